import os
import sys

import pytest

# 测试直接从项目根目录导入各模块
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hypothesis import settings  # noqa: E402

from session.scheduler import ManualClock, Scheduler  # noqa: E402

# CI 使用更多样例
settings.register_profile("ci", max_examples=200)
settings.register_profile("dev", max_examples=100)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture
def clock():
    """从 0 ms 开始的手动时钟"""
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)
