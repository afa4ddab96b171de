import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from commit_graph_window import CommitGraphWindow
from settings import get_settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"


def setup_logging():
    # 根据环境变量设置日志级别
    log_level = logging.DEBUG if os.getenv("DEBUG") == "1" else logging.INFO
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    # add file handler
    if os.getenv("LOG_TO_FILE") == "1":
        file_handler = logging.FileHandler("commit_graph.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)


def main():
    setup_logging()
    app = QApplication(sys.argv)
    settings = get_settings()

    window = CommitGraphWindow(settings)
    window.show()

    # 命令行指定的仓库优先，否则打开上次的仓库
    repo_path = sys.argv[1] if len(sys.argv) > 1 else settings.get_last_repo()
    if repo_path and os.path.isdir(repo_path):
        window.open_folder(os.path.abspath(repo_path))

    window.activateWindow()
    window.raise_()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
