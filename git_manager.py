import logging
from dataclasses import dataclass
from typing import List, Optional

import git
import git.exc
from git import GitCommandError

from git_graph_data import Commit
from git_log_parser import GIT_LOG_FORMAT, parse_commit_log


class GitLogError(Exception):
    """Raised when the commit history cannot be read."""


@dataclass(frozen=True)
class FileChange:
    path: str
    status: str  # A / M / D / R / C / T
    old_path: Optional[str] = None
    insertions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class CommitDetails:
    hash: str
    author_name: str
    author_email: str
    timestamp: int
    message: str
    parent_hashes: tuple[str, ...] = ()
    files: tuple[FileChange, ...] = ()

    @property
    def is_merge(self) -> bool:
        return len(self.parent_hashes) > 1


class GitManager:
    def __init__(self, repo_path: str):
        self.repo_path = repo_path
        self.repo: Optional[git.Repo] = None

    def initialize(self) -> bool:
        """初始化 Git 仓库"""
        try:
            self.repo = git.Repo(self.repo_path)
            return True
        except (git.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            return False

    def get_branches(self) -> List[str]:
        """获取所有本地分支"""
        if not self.repo:
            return []
        return [branch.name for branch in self.repo.branches]

    def get_current_branch(self) -> Optional[str]:
        """当前分支名；HEAD 分离或仓库为空时返回 None"""
        if not self.repo:
            return None
        try:
            return self.repo.active_branch.name
        except TypeError:
            # detached HEAD
            return None

    def get_commit_log(self, max_count: int, all_branches: bool = True, branch: Optional[str] = None) -> List[Commit]:
        """获取提交历史

        参数：
            max_count: 返回的最大提交数量
            all_branches: 是否包含所有分支 (--all)
            branch: 只看某个分支；all_branches 为 True 时忽略

        返回按 --topo-order 排列的提交，子提交总在父提交之前。
        """
        if not self.repo:
            raise GitLogError("Repository not initialized.")
        if max_count <= 0:
            return []
        if not self.repo.head.is_valid() and not self.repo.refs:
            # empty repository
            return []

        args = [f"--pretty=format:{GIT_LOG_FORMAT}", "--topo-order", f"--max-count={max_count}"]
        if all_branches:
            args.append("--all")
        elif branch:
            # "--" keeps a branch named like a file from being read as a path
            args.extend([branch, "--"])
        elif not self.repo.head.is_valid():
            # unborn branch, nothing to show yet
            return []

        try:
            output = self.repo.git.log(*args)
        except GitCommandError as e:
            # str(e) already carries the command, status and stderr
            error_message = f"Reading commit log failed: {e!s}"
            logging.error(error_message)
            raise GitLogError(error_message) from e

        commits = parse_commit_log(output)
        logging.debug("Read %d commits from %s (max_count=%d, all=%s)", len(commits), self.repo_path, max_count, all_branches)
        return commits

    def get_refs_map(self) -> dict[str, List[str]]:
        """提交哈希 -> 指向它的分支/远程分支/标签名"""
        if not self.repo:
            return {}

        decorations_map: dict[str, List[str]] = {}
        for head in self.repo.heads:
            try:
                decorations_map.setdefault(head.commit.hexsha, []).append(head.name)
            except ValueError:
                # branch without a commit yet
                continue

        for remote in self.repo.remotes:
            for ref in remote.refs:
                try:
                    decorations_map.setdefault(ref.commit.hexsha, []).append(ref.name)
                except ValueError:
                    continue

        for tag in self.repo.tags:
            try:
                decorations_map.setdefault(tag.commit.hexsha, []).append(f"tag: {tag.name}")
            except ValueError:
                # tag pointing at something that is not a commit
                logging.debug("Skipping tag %s", tag.name)
        return decorations_map

    def get_refs_for_commit(self, commit_hash: str) -> List[str]:
        return self.get_refs_map().get(commit_hash, [])

    def get_head_commit_hash(self) -> Optional[str]:
        """HEAD 指向的提交；空仓库返回 None"""
        if not self.repo or not self.repo.head.is_valid():
            return None
        return self.repo.head.commit.hexsha

    def get_commit_details(self, commit_hash: str) -> CommitDetails:
        """
        获取单个提交的详细信息和文件变化。
        合并提交与第一个父提交比较，根提交的所有文件都算新增。
        """
        if not self.repo:
            raise GitLogError("Repository not initialized.")
        try:
            commit = self.repo.commit(commit_hash)
        except (ValueError, git.exc.BadName, git.exc.BadObject) as e:
            raise GitLogError(f"Unknown commit {commit_hash}: {e!s}") from e

        try:
            line_stats = commit.stats.files
            if commit.parents:
                files = [
                    self._file_change(diff.change_type, diff.a_path, diff.b_path, line_stats)
                    for diff in commit.parents[0].diff(commit)
                ]
            else:
                files = [
                    self._file_change("A", item.path, item.path, line_stats)
                    for item in commit.tree.traverse()
                    if item.type == "blob"
                ]
        except GitCommandError as e:
            error_message = f"Reading commit {commit_hash[:8]} failed: {e!s}"
            logging.error(error_message)
            raise GitLogError(error_message) from e

        return CommitDetails(
            hash=commit.hexsha,
            author_name=commit.author.name or "",
            author_email=commit.author.email or "",
            timestamp=commit.authored_date,
            message=commit.message.strip(),
            parent_hashes=tuple(parent.hexsha for parent in commit.parents),
            files=tuple(sorted(files, key=lambda change: change.path)),
        )

    @staticmethod
    def _file_change(change_type: str, a_path: Optional[str], b_path: Optional[str], line_stats: dict) -> FileChange:
        # 删除的文件只有 a_path
        path = a_path if change_type == "D" else (b_path or a_path)
        counts = line_stats.get(path, {})
        return FileChange(
            path=path,
            status=change_type,
            old_path=a_path if change_type in ("R", "C") else None,
            insertions=counts.get("insertions", 0),
            deletions=counts.get("deletions", 0),
        )
