import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from git_graph_data import EMPTY_LAYOUT, Commit, GraphLayout, GraphNode
from git_graph_layout import layout_commits
from utils import timeit

# (repo_path, max_count, all_branches, branch) -> commits in reverse topological order
CommitFetcher = Callable[[str, int, bool, Optional[str]], Sequence[Commit]]

DEFAULT_INITIAL_COUNT = 50
DEFAULT_LOAD_MORE_COUNT = 50


@dataclass(frozen=True)
class FetchRequest:
    repo_path: str
    max_count: int
    all_branches: bool
    branch: Optional[str]
    generation: int
    is_initial: bool


class CommitGraphDriver:
    """Accumulated commit list for one repository view plus its layout.

    Pagination refetches the history with a larger max_count, so every page
    replaces the list with a longer one in the same order. The layout is
    recomputed for the whole list, and only when the list object changes.
    reset() starts a new generation: results of requests issued before it
    are dropped.
    """

    def __init__(
        self,
        fetch_commits: Optional[CommitFetcher] = None,
        initial_count: int = DEFAULT_INITIAL_COUNT,
        load_more_count: int = DEFAULT_LOAD_MORE_COUNT,
    ):
        self.fetch_commits = fetch_commits
        self.initial_count = initial_count
        self.load_more_count = load_more_count

        self.repo_path: Optional[str] = None
        self.all_branches = True
        self.branch: Optional[str] = None
        self.has_more = False
        self.error: Optional[str] = None

        self._commits: Sequence[Commit] = ()
        self._generation = 0
        self._pending: Optional[FetchRequest] = None
        self._layout_input: Optional[Sequence[Commit]] = None
        self._layout: GraphLayout = EMPTY_LAYOUT

    @property
    def commits(self) -> Sequence[Commit]:
        return self._commits

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return self._pending is not None

    @property
    def pending_request(self) -> Optional[FetchRequest]:
        return self._pending

    def reset(self, repo_path: Optional[str], all_branches: bool = True, branch: Optional[str] = None) -> Optional[FetchRequest]:
        """Drop everything for a new repository, branch or an explicit refresh."""
        self._generation += 1
        self.repo_path = repo_path
        self.all_branches = all_branches
        self.branch = branch
        self._commits = ()
        self.has_more = False
        self.error = None
        self._pending = None
        self._invalidate_layout()

        if not repo_path:
            return None
        self._pending = FetchRequest(
            repo_path=repo_path,
            max_count=self.initial_count,
            all_branches=all_branches,
            branch=branch,
            generation=self._generation,
            is_initial=True,
        )
        return self._pending

    def next_page_request(self) -> Optional[FetchRequest]:
        if not self.repo_path or not self.has_more or self._pending is not None:
            return None
        self._pending = FetchRequest(
            repo_path=self.repo_path,
            max_count=len(self._commits) + self.load_more_count,
            all_branches=self.all_branches,
            branch=self.branch,
            generation=self._generation,
            is_initial=False,
        )
        return self._pending

    def is_current(self, request: FetchRequest) -> bool:
        return request.generation == self._generation

    def apply_page(self, request: FetchRequest, commits: Sequence[Commit]) -> bool:
        if not self.is_current(request):
            logging.debug("Dropping stale commit page (generation %d != %d)", request.generation, self._generation)
            return False
        self._pending = None
        self.error = None
        self._commits = tuple(commits)
        self.has_more = len(self._commits) >= request.max_count
        logging.debug("Applied %d commits, has_more=%s", len(self._commits), self.has_more)
        return True

    def apply_error(self, request: FetchRequest, message: str) -> bool:
        if not self.is_current(request):
            return False
        self._pending = None
        self.error = message
        if request.is_initial:
            self._commits = ()
            self.has_more = False
        logging.warning("Failed to load commits for %s: %s", request.repo_path, message)
        return True

    def load(self, repo_path: str, all_branches: bool = True, branch: Optional[str] = None) -> bool:
        """Synchronous reset + first page through the injected fetcher."""
        request = self.reset(repo_path, all_branches, branch)
        return self._run(request)

    def load_more(self) -> bool:
        return self._run(self.next_page_request())

    def _run(self, request: Optional[FetchRequest]) -> bool:
        if request is None:
            return False
        if self.fetch_commits is None:
            raise RuntimeError("CommitGraphDriver has no fetcher; use the request/apply API")
        try:
            commits = self.fetch_commits(request.repo_path, request.max_count, request.all_branches, request.branch)
        except Exception as e:
            self.apply_error(request, str(e))
            return False
        return self.apply_page(request, commits)

    @property
    def layout(self) -> GraphLayout:
        if self._layout_input is not self._commits:
            self._layout = self._compute_layout(self._commits)
            self._layout_input = self._commits
        return self._layout

    def node_for(self, commit_hash: str) -> Optional[GraphNode]:
        return self.layout.node_for(commit_hash)

    def _invalidate_layout(self):
        self._layout_input = None
        self._layout = EMPTY_LAYOUT

    @timeit
    def _compute_layout(self, commits: Sequence[Commit]) -> GraphLayout:
        return layout_commits(commits)
