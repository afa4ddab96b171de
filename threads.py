from typing import TYPE_CHECKING

from PyQt6.QtCore import QThread, pyqtSignal

if TYPE_CHECKING:
    from commit_graph_driver import FetchRequest
    from git_manager import GitManager


class CommitLogThread(QThread):
    """在后台读取提交历史的线程"""

    finished = pyqtSignal(object, list)  # (request, commits)
    error = pyqtSignal(object, str)  # (request, error_message)

    def __init__(self, git_manager: "GitManager", request: "FetchRequest", parent=None):
        super().__init__(parent)
        self.git_manager = git_manager
        self.request = request

    def run(self):
        """执行 git log"""
        try:
            commits = self.git_manager.get_commit_log(
                self.request.max_count, all_branches=self.request.all_branches, branch=self.request.branch
            )
            self.finished.emit(self.request, commits)
        except Exception as e:
            self.error.emit(self.request, str(e))
