import os
from functools import partial

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import QFileDialog, QMainWindow, QMessageBox, QSplitter

from commit_detail_view import CommitDetailView
from commit_history_view import CommitHistoryView
from settings import Settings


class CommitGraphWindow(QMainWindow):
    def __init__(self, settings: Settings):
        super().__init__()
        self.settings = settings
        self.setWindowTitle(self.tr("Commit Graph"))
        self.resize(1100, 700)

        self.commit_history_view = CommitHistoryView(settings, self)
        self.commit_history_view.commit_selected.connect(self.on_commit_selected)

        # 下方显示选中提交的详情
        self.commit_detail_view = CommitDetailView(self)
        self.commit_detail_view.commit_link_clicked.connect(self.commit_history_view.select_commit)
        self.commit_detail_view.hash_copied.connect(self.on_hash_copied)

        splitter = QSplitter(Qt.Orientation.Vertical, self)
        splitter.addWidget(self.commit_history_view)
        splitter.addWidget(self.commit_detail_view)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        file_menu = self.menuBar().addMenu(self.tr("File"))
        open_action = QAction(self.tr("Open Repository..."), self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self.open_folder_dialog)
        file_menu.addAction(open_action)

        self.recent_menu = file_menu.addMenu(self.tr("Recent"))
        self.update_recent_menu()

        refresh_action = QAction(self.tr("Refresh"), self)
        refresh_action.setShortcut("F5")
        refresh_action.triggered.connect(self.commit_history_view.refresh)
        file_menu.addAction(refresh_action)

    def update_recent_menu(self):
        self.recent_menu.clear()
        recent_repos = [path for path in self.settings.get_recent_repos() if os.path.exists(path)]
        for repo_path in recent_repos:
            action = QAction(repo_path, self)
            action.triggered.connect(partial(self.open_folder, repo_path))
            self.recent_menu.addAction(action)
        self.recent_menu.setEnabled(bool(recent_repos))

    def open_folder_dialog(self):
        """打开文件夹选择对话框"""
        folder_path = QFileDialog.getExistingDirectory(self, self.tr("Select Git Repository"))
        if folder_path:
            self.open_folder(folder_path)

    def open_folder(self, folder_path):
        """打开指定的仓库"""
        self.commit_detail_view.clear_commit()
        if self.commit_history_view.set_repository(folder_path):
            self.settings.add_recent_repo(folder_path)
            self.update_recent_menu()
            self.setWindowTitle(f"{self.tr('Commit Graph')} - {folder_path}")
        else:
            QMessageBox.warning(self, self.tr("Commit Graph"), self.tr("Selected folder is not a valid Git repository"))

    def on_commit_selected(self, commit_hash):
        self.commit_detail_view.show_commit(
            self.commit_history_view.git_manager, commit_hash, self.commit_history_view.refs_for(commit_hash)
        )

    def on_hash_copied(self, commit_hash):
        self.statusBar().showMessage(f"{commit_hash} {self.tr('copied')}", 3000)

    def closeEvent(self, event):
        self.commit_history_view.shutdown()
        super().closeEvent(event)
