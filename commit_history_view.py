import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from PyQt6.QtCore import Qt, QTimer, pyqtSignal
from PyQt6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from commit_graph_driver import CommitGraphDriver, FetchRequest
from dag_item_delegate import DAGItemDelegate
from git_manager import GitManager
from threads import CommitLogThread

if TYPE_CHECKING:
    from settings import Settings

ALL_BRANCHES = "all"
HASH_ROLE = Qt.ItemDataRole.UserRole


def footer_text(driver: CommitGraphDriver) -> str:
    """列表底部的提示：正在加载更多或已经到底"""
    if not driver.commits or driver.error:
        return ""
    if driver.is_loading:
        return "Loading more..."
    if not driver.has_more:
        return "End of history"
    return ""


class CommitHistoryView(QWidget):
    commit_selected = pyqtSignal(str)  # 当选择提交时发出信号

    def __init__(self, settings: "Settings", parent=None):
        super().__init__(parent)
        self.settings = settings
        self.git_manager: Optional[GitManager] = None
        self.driver = CommitGraphDriver(
            initial_count=settings.get_initial_commit_count(),
            load_more_count=settings.get_load_more_count(),
        )
        self._threads: dict[FetchRequest, CommitLogThread] = {}
        self._refs_map: dict[str, list[str]] = {}
        self.setup_ui()
        self._show_status("Open a git repository to view commits")

    def setup_ui(self):
        layout = QVBoxLayout()
        layout.setContentsMargins(5, 5, 5, 5)
        self.setLayout(layout)

        top_layout = QHBoxLayout()
        top_layout.addWidget(QLabel("Branch:"))
        self.branch_combo = QComboBox()
        self.branch_combo.setMinimumWidth(160)
        self.branch_combo.activated.connect(self.on_branch_changed)
        top_layout.addWidget(self.branch_combo)

        self.refresh_button = QPushButton("刷新")
        self.refresh_button.clicked.connect(self.refresh)
        top_layout.addWidget(self.refresh_button)
        top_layout.addStretch()
        layout.addLayout(top_layout)

        # 空状态 / 加载中 / 错误提示
        status_layout = QHBoxLayout()
        self.status_label = QLabel()
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        status_layout.addWidget(self.status_label, 1)
        self.retry_button = QPushButton("Retry")
        self.retry_button.clicked.connect(self.refresh)
        self.retry_button.setVisible(False)
        status_layout.addWidget(self.retry_button)
        layout.addLayout(status_layout)

        # 提交历史列表（包含 DAG 图形列）
        self.history_list = QTreeWidget(self)
        self.history_list.setRootIsDecorated(False)
        self.history_list.setUniformRowHeights(True)
        self.history_list.setHeaderLabels(["DAG", "提交信息", "Branches", "作者", "日期", "Hash"])
        self.history_list.setColumnWidth(1, 320)  # Message
        self.history_list.setColumnWidth(2, 150)  # Branches
        self.history_list.setColumnWidth(3, 120)  # Author
        self.history_list.setColumnWidth(4, 150)  # Date
        self.history_list.currentItemChanged.connect(self.on_current_item_changed)

        # 设置 DAG 委托绘制第一列
        self.dag_delegate = DAGItemDelegate(
            self.history_list, row_height=self.settings.get_row_height(), rail_width=self.settings.get_rail_width()
        )
        self.history_list.setItemDelegateForColumn(0, self.dag_delegate)
        self.history_list.setColumnWidth(0, self.dag_delegate.graph_width())

        # 滚动到底部自动加载更多
        self.history_list.verticalScrollBar().valueChanged.connect(self._on_scroll)
        layout.addWidget(self.history_list)

        self.footer_label = QLabel()
        self.footer_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.footer_label.setStyleSheet("color: gray; font-size: 11px;")
        self.footer_label.setVisible(False)
        layout.addWidget(self.footer_label)

    def set_repository(self, repo_path: Optional[str]) -> bool:
        """打开仓库并加载第一页提交"""
        self.git_manager = None
        if repo_path:
            git_manager = GitManager(repo_path)
            if git_manager.initialize():
                self.git_manager = git_manager

        if not self.git_manager:
            self.driver.reset(None)
            self._refs_map = {}
            self.dag_delegate.set_head_hash(None)
            self._update_branch_combo([], None)
            self._render()
            self._show_status("Open a git repository to view commits")
            return False

        self._update_branch_combo(self.git_manager.get_branches(), self.git_manager.get_current_branch())
        self.update_history()
        return True

    def _update_branch_combo(self, branches: list[str], current_branch: Optional[str]):
        self.branch_combo.blockSignals(True)
        self.branch_combo.clear()
        if branches or self.git_manager:
            self.branch_combo.addItem(ALL_BRANCHES)
            self.branch_combo.addItems(branches)
        if self.settings.get_all_branches() or not current_branch:
            self.branch_combo.setCurrentText(ALL_BRANCHES)
        else:
            self.branch_combo.setCurrentText(current_branch)
        self.branch_combo.blockSignals(False)

    def selected_branch(self) -> Optional[str]:
        branch = self.branch_combo.currentText()
        if not branch or branch == ALL_BRANCHES:
            return None
        return branch

    def on_branch_changed(self, _index: int):
        """切换分支时丢弃旧的布局重新加载"""
        self.settings.set_all_branches(self.selected_branch() is None)
        self.update_history()

    def refresh(self):
        self.update_history()

    def update_history(self):
        """重置并加载提交历史"""
        if not self.git_manager:
            return
        branch = self.selected_branch()
        request = self.driver.reset(self.git_manager.repo_path, all_branches=branch is None, branch=branch)
        self._refs_map = self.git_manager.get_refs_map()
        self.dag_delegate.set_head_hash(self.git_manager.get_head_commit_hash())
        self.history_list.clear()
        self._render()
        if request is not None:
            self._start_fetch(request)

    def load_more_commits(self):
        """加载更多提交历史"""
        request = self.driver.next_page_request()
        if request is None:
            return
        logging.debug("加载更多提交历史... %d", len(self.driver.commits))
        self._start_fetch(request)

    def _start_fetch(self, request: FetchRequest):
        thread = CommitLogThread(self.git_manager, request, self)
        thread.finished.connect(self._on_commits_loaded)
        thread.error.connect(self._on_commits_failed)
        self._threads[request] = thread
        thread.start()
        self._update_status()

    def _release_thread(self, request: FetchRequest):
        thread = self._threads.pop(request, None)
        if thread is not None:
            thread.wait()
            thread.deleteLater()

    def _on_commits_loaded(self, request: FetchRequest, commits: list):
        self._release_thread(request)
        if self.driver.apply_page(request, commits):
            self._render()

    def _on_commits_failed(self, request: FetchRequest, error_message: str):
        self._release_thread(request)
        if self.driver.apply_error(request, error_message):
            self._render()

    def _render(self):
        layout = self.driver.layout
        self.dag_delegate.set_layout(layout)
        self.history_list.setColumnWidth(0, self.dag_delegate.graph_width())

        commits = self.driver.commits
        existing = self.history_list.topLevelItemCount()
        if existing > len(commits) or any(
            self.history_list.topLevelItem(row).data(0, HASH_ROLE) != commits[row].hash for row in range(existing)
        ):
            # 历史被改写，不是在末尾追加
            self.history_list.clear()
            existing = 0

        for commit in commits[existing:]:
            item = QTreeWidgetItem(self.history_list)
            item.setData(0, HASH_ROLE, commit.hash)
            item.setText(1, commit.summary)
            item.setText(2, ", ".join(self._refs_map.get(commit.hash, [])))
            item.setText(3, commit.author_name)
            item.setToolTip(3, commit.author_email)
            item.setText(4, datetime.fromtimestamp(commit.timestamp).strftime("%Y-%m-%d %H:%M:%S"))
            item.setText(5, commit.short_hash)

        self.history_list.viewport().update()
        self._update_status()

        # 第一页不够一屏时没有滚动条，直接继续加载
        if self.driver.has_more and not self.driver.error and self.history_list.verticalScrollBar().maximum() == 0:
            QTimer.singleShot(0, self.load_more_commits)

    def _update_status(self):
        footer = footer_text(self.driver)
        self.footer_label.setText(footer)
        self.footer_label.setVisible(bool(footer))

        if self.driver.error:
            self._show_status(f"Failed to load commits: {self.driver.error}", retry=True)
        elif self.driver.is_loading and not self.driver.commits:
            self._show_status("Loading commits...")
        elif not self.driver.commits and self.git_manager:
            self._show_status("No commits found")
        elif not self.git_manager:
            self._show_status("Open a git repository to view commits")
        else:
            self._show_status("")

    def _show_status(self, message: str, retry: bool = False):
        self.status_label.setText(message)
        self.status_label.setVisible(bool(message))
        self.retry_button.setVisible(retry)

    def _on_scroll(self, value):
        # 滚动到底部时自动加载更多
        scroll_bar = self.history_list.verticalScrollBar()
        if value == scroll_bar.maximum() and self.driver.has_more:
            self.load_more_commits()

    def on_current_item_changed(self, current: Optional[QTreeWidgetItem], previous: Optional[QTreeWidgetItem]):
        commit_hash = current.data(0, HASH_ROLE) if current else None
        self.dag_delegate.set_selected_hash(commit_hash)
        self.history_list.viewport().update()
        if commit_hash:
            self.commit_selected.emit(commit_hash)

    def refs_for(self, commit_hash: str) -> list[str]:
        return self._refs_map.get(commit_hash, [])

    def select_commit(self, commit_hash: str) -> bool:
        """按哈希选中提交（只在已加载的范围内）"""
        node = self.driver.node_for(commit_hash)
        if node is None:
            return False
        item = self.history_list.topLevelItem(node.row)
        if item is None:
            return False
        self.history_list.setCurrentItem(item)
        self.history_list.scrollToItem(item)
        return True

    def shutdown(self):
        """等待后台线程结束"""
        for request in list(self._threads):
            self._release_thread(request)
