import html
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from PyQt6.QtCore import Qt, QUrl, pyqtSignal
from PyQt6.QtGui import QColor, QGuiApplication
from PyQt6.QtWidgets import QTextBrowser, QTextEdit, QTreeWidget, QTreeWidgetItem, QVBoxLayout, QWidget

from git_manager import CommitDetails, FileChange, GitLogError

if TYPE_CHECKING:
    from git_manager import GitManager

ROOT_DIRECTORY = "(root)"

# 文件状态 -> (显示文字, 颜色)
STATUS_DISPLAY = {
    "A": ("新增", "#2ca02c"),
    "M": ("修改", "#bcbd22"),
    "D": ("删除", "#d62728"),
    "R": ("重命名", "#1f77b4"),
    "C": ("复制", "#9467bd"),
    "T": ("类型变化", "#7f7f7f"),
}


def group_files_by_directory(files) -> list[tuple[str, list[FileChange]]]:
    """按目录分组，目录按名字排序，仓库根目录下的文件归到 (root)"""
    groups: dict[str, list[FileChange]] = {}
    for change in files:
        directory, _, _name = change.path.rpartition("/")
        groups.setdefault(directory or ROOT_DIRECTORY, []).append(change)
    return sorted(groups.items())


def commit_detail_html(details: CommitDetails, refs=()) -> str:
    """提交详情的 HTML：消息、SHA（可复制）、作者、日期、父提交链接和引用"""
    message = html.escape(details.message).replace("\n", "<br>")
    commit_date = datetime.fromtimestamp(details.timestamp).strftime("%Y/%m/%d at %H:%M")
    author = f"{html.escape(details.author_name)} &lt;{html.escape(details.author_email)}&gt;"

    if details.parent_hashes:
        parent_links = " ".join(f'<a href="commit:{sha}">{sha[:8]}</a>' for sha in details.parent_hashes)
    else:
        parent_links = "无 (root commit)"
    parents_label = "Merge of" if details.is_merge else "Parent"

    insertions = sum(change.insertions for change in details.files)
    deletions = sum(change.deletions for change in details.files)

    lines = [
        f"<pre style='white-space: pre-wrap; word-wrap: break-word;'>{message}</pre>",
        f'<p>SHA: <code>{details.hash}</code> <a href="#copy">复制</a></p>',
        f"<p>{author} on {commit_date}</p>",
        f"<p>{parents_label}: {parent_links}</p>",
    ]
    if refs:
        lines.append(f"<p>Refs: {html.escape(', '.join(refs))}</p>")
    lines.append(f"<p>{len(details.files)} files changed, +{insertions} -{deletions}</p>")
    return "".join(lines)


class CommitDetailView(QWidget):
    """
    选中提交的详细信息
    上半部分是提交信息（HTML），下半部分是按目录分组的文件变化
    """

    commit_link_clicked = pyqtSignal(str)  # 点击父提交链接
    hash_copied = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.current_details: Optional[CommitDetails] = None
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout()
        layout.setContentsMargins(5, 5, 5, 5)
        self.setLayout(layout)

        self.detail_browser = QTextBrowser(self)
        self.detail_browser.setReadOnly(True)
        self.detail_browser.setOpenLinks(False)
        self.detail_browser.setFrameShape(QTextEdit.Shape.NoFrame)
        self.detail_browser.setStyleSheet("background-color: #f5f5f5; font-family: monospace; padding: 5px;")
        self.detail_browser.setMinimumHeight(100)
        self.detail_browser.setTextInteractionFlags(
            Qt.TextInteractionFlag.TextSelectableByMouse
            | Qt.TextInteractionFlag.TextSelectableByKeyboard
            | Qt.TextInteractionFlag.LinksAccessibleByMouse
            | Qt.TextInteractionFlag.LinksAccessibleByKeyboard
        )
        self.detail_browser.anchorClicked.connect(self.handle_link_click)
        layout.addWidget(self.detail_browser)

        self.files_tree = QTreeWidget(self)
        self.files_tree.setHeaderLabels(["文件", "状态", "+", "-"])
        layout.addWidget(self.files_tree)

    def show_commit(self, git_manager: Optional["GitManager"], commit_hash: Optional[str], refs=()):
        """当选择的commit变化时调用"""
        if not git_manager or not commit_hash:
            self.clear_commit()
            return

        try:
            details = git_manager.get_commit_details(commit_hash)
        except GitLogError as e:
            logging.warning("Failed to read commit %s: %s", commit_hash, e)
            self.clear_commit()
            self.detail_browser.setPlainText(f"获取commit详细信息失败: {e!s}")
            return

        self.current_details = details
        self.detail_browser.setHtml(commit_detail_html(details, refs))
        self._fill_files(details.files)

    def clear_commit(self):
        self.current_details = None
        self.detail_browser.clear()
        self.files_tree.clear()

    def _fill_files(self, files):
        self.files_tree.clear()
        for directory, changes in group_files_by_directory(files):
            dir_item = QTreeWidgetItem(self.files_tree)
            dir_item.setText(0, directory)
            for change in changes:
                label, color = STATUS_DISPLAY.get(change.status, (change.status, "#7f7f7f"))
                item = QTreeWidgetItem(dir_item)
                item.setText(0, change.path.rpartition("/")[2])
                item.setToolTip(0, f"{change.old_path} -> {change.path}" if change.old_path else change.path)
                item.setText(1, label)
                item.setForeground(1, QColor(color))
                item.setText(2, str(change.insertions))
                item.setText(3, str(change.deletions))
        self.files_tree.expandAll()
        self.files_tree.resizeColumnToContents(0)

    def handle_link_click(self, url: QUrl):
        if url.fragment() == "copy" and self.current_details:
            QGuiApplication.clipboard().setText(self.current_details.hash)
            self.hash_copied.emit(self.current_details.hash)
        elif url.scheme() == "commit":
            self.commit_link_clicked.emit(url.path())
