"""一键启动驾驶员警觉度监测 Web 界面（默认模拟数据，--camera 使用摄像头）"""

import argparse
import logging
import os
import subprocess
import sys
import threading
import time
import webbrowser

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

# (pip 包名, 导入名)
REQUIRED_PACKAGES = [
    ("flask", "flask"),
    ("opencv-python", "cv2"),
    ("mediapipe", "mediapipe"),
    ("numpy", "numpy"),
    ("Pillow", "PIL"),
    ("pyttsx3", "pyttsx3"),
]


def find_missing_packages():
    """返回无法导入的依赖包名列表"""
    missing = []
    for pkg, import_name in REQUIRED_PACKAGES:
        try:
            __import__(import_name)
        except ImportError:
            missing.append(pkg)
    return missing


def install_packages(packages):
    print(f"缺少依赖: {', '.join(packages)}，正在安装...")
    subprocess.check_call([sys.executable, "-m", "pip", "install", *packages])
    print("依赖安装完成\n")


def open_browser_later(url, delay=1.5):
    """等待服务启动后在后台打开浏览器"""
    def _open():
        time.sleep(delay)
        webbrowser.open(url)

    threading.Thread(target=_open, daemon=True).start()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="启动驾驶员警觉度监测 Web 界面")
    parser.add_argument("--camera", action="store_true", help="使用摄像头（默认使用模拟数据）")
    parser.add_argument("--camera-index", type=int, default=0, help="摄像头编号")
    parser.add_argument("--config", type=str, default=None, help="JSON 告警配置文件路径")
    parser.add_argument("--port", type=int, default=5000, help="Web 服务端口")
    parser.add_argument("--no-browser", action="store_true", help="不自动打开浏览器")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    os.chdir(PROJECT_ROOT)
    sys.path.insert(0, PROJECT_ROOT)

    missing = find_missing_packages()
    if missing:
        install_packages(missing)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    import web_app
    web_app.system = web_app.create_system(
        source_name="camera" if args.camera else "simulated",
        config_path=args.config,
        camera_index=args.camera_index,
    )

    url = f"http://localhost:{args.port}"
    print(f"驾驶员警觉度监测已启动: {url}  (Ctrl+C 停止)")
    if not args.no_browser:
        open_browser_later(url)
    web_app.app.run(host="0.0.0.0", port=args.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
