import unittest

from commit_graph_driver import CommitGraphDriver
from git_graph_data import Commit
from git_manager import GitLogError
from threads import CommitLogThread


class FakeGitManager:
    def __init__(self, commits=None, error=None):
        self.commits = commits or []
        self.error = error
        self.calls = []

    def get_commit_log(self, max_count, all_branches=True, branch=None):
        self.calls.append((max_count, all_branches, branch))
        if self.error:
            raise self.error
        return self.commits[:max_count]


class TestCommitLogThread(unittest.TestCase):
    def setUp(self):
        self.driver = CommitGraphDriver(initial_count=10)
        self.request = self.driver.reset("/repo", all_branches=False, branch="main")
        self.results = []
        self.errors = []

    def _run(self, git_manager):
        # run() directly so the signals fire on this thread
        thread = CommitLogThread(git_manager, self.request)
        thread.finished.connect(lambda request, commits: self.results.append((request, commits)))
        thread.error.connect(lambda request, message: self.errors.append((request, message)))
        thread.run()

    def test_emits_commits_with_request(self):
        git_manager = FakeGitManager([Commit(hash="a" * 40)])
        self._run(git_manager)

        self.assertEqual(git_manager.calls, [(10, False, "main")])
        self.assertEqual(len(self.results), 1)
        request, commits = self.results[0]
        self.assertIs(request, self.request)
        self.assertTrue(self.driver.apply_page(request, commits))
        self.assertEqual(len(self.driver.layout), 1)

    def test_emits_error(self):
        self._run(FakeGitManager(error=GitLogError("fatal: not a git repository")))
        self.assertEqual(self.results, [])
        self.assertEqual(self.errors, [(self.request, "fatal: not a git repository")])


if __name__ == "__main__":
    unittest.main()
