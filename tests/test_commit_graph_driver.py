import unittest
from unittest.mock import patch

import commit_graph_driver
from commit_graph_driver import CommitGraphDriver
from git_graph_data import EMPTY_LAYOUT, Commit
from git_manager import GitLogError


def linear_history(size):
    hashes = [f"{i:040x}" for i in range(size)]
    return [Commit(hash=sha, parent_hashes=(hashes[i + 1],) if i + 1 < size else ()) for i, sha in enumerate(hashes)]


class FakeRepository:
    """Stands in for GitManager.get_commit_log."""

    def __init__(self, commits):
        self.commits = commits
        self.calls = []
        self.fail = False

    def __call__(self, repo_path, max_count, all_branches, branch):
        self.calls.append((repo_path, max_count, all_branches, branch))
        if self.fail:
            raise GitLogError("fatal: bad revision")
        return list(self.commits[:max_count])


class TestCommitGraphDriverPaging(unittest.TestCase):
    def setUp(self):
        self.repository = FakeRepository(linear_history(120))
        self.driver = CommitGraphDriver(self.repository, initial_count=50, load_more_count=50)

    def test_initial_load(self):
        self.assertTrue(self.driver.load("/repo"))
        self.assertEqual(len(self.driver.commits), 50)
        self.assertTrue(self.driver.has_more)
        self.assertFalse(self.driver.is_loading)
        self.assertEqual(len(self.driver.layout), 50)
        self.assertEqual(self.repository.calls, [("/repo", 50, True, None)])

    def test_load_more_refetches_with_larger_count(self):
        self.driver.load("/repo")
        self.assertTrue(self.driver.load_more())
        self.assertEqual(len(self.driver.commits), 100)
        self.assertTrue(self.driver.has_more)

        self.assertTrue(self.driver.load_more())
        self.assertEqual(len(self.driver.commits), 120)
        self.assertFalse(self.driver.has_more)
        self.assertEqual([call[1] for call in self.repository.calls], [50, 100, 150])

        self.assertIsNone(self.driver.next_page_request())
        self.assertFalse(self.driver.load_more())

    def test_short_history_has_no_more(self):
        driver = CommitGraphDriver(FakeRepository(linear_history(3)), initial_count=50)
        driver.load("/repo")
        self.assertFalse(driver.has_more)
        self.assertEqual(driver.layout.max_columns, 1)

    def test_new_page_keeps_earlier_placements(self):
        self.driver.load("/repo")
        before = [(node.row, node.column, node.color_idx) for node in self.driver.layout.nodes]
        self.driver.load_more()
        after = [(node.row, node.column, node.color_idx) for node in self.driver.layout.nodes]
        self.assertEqual(after[: len(before)], before)

    def test_branch_is_passed_to_fetcher(self):
        self.driver.load("/repo", all_branches=False, branch="feature")
        self.driver.load_more()
        self.assertEqual(self.repository.calls[-1], ("/repo", 100, False, "feature"))

    def test_no_second_page_while_loading(self):
        request = self.driver.reset("/repo")
        self.assertTrue(self.driver.is_loading)
        self.assertIs(self.driver.pending_request, request)
        self.assertIsNone(self.driver.next_page_request())

    def test_reset_without_repository(self):
        self.driver.load("/repo")
        self.assertIsNone(self.driver.reset(None))
        self.assertEqual(self.driver.commits, ())
        self.assertIs(self.driver.layout, EMPTY_LAYOUT)
        self.assertFalse(self.driver.load_more())

    def test_run_without_fetcher(self):
        driver = CommitGraphDriver()
        with self.assertRaises(RuntimeError):
            driver.load("/repo")


class TestCommitGraphDriverLayoutCache(unittest.TestCase):
    def setUp(self):
        self.driver = CommitGraphDriver(FakeRepository(linear_history(80)), initial_count=50, load_more_count=50)

    def test_layout_is_computed_once_per_commit_list(self):
        with patch.object(commit_graph_driver, "layout_commits", wraps=commit_graph_driver.layout_commits) as spy:
            self.driver.load("/repo")
            first = self.driver.layout
            self.assertIs(self.driver.layout, first)
            self.assertIs(self.driver.layout, first)
            self.assertEqual(spy.call_count, 1)

            self.driver.load_more()
            second = self.driver.layout
            self.assertIsNot(second, first)
            self.assertEqual(len(second), 80)
            self.assertEqual(spy.call_count, 2)

    def test_reset_invalidates_layout(self):
        self.driver.load("/repo")
        old_layout = self.driver.layout
        self.driver.reset("/repo", all_branches=False, branch="main")
        self.assertIs(self.driver.layout, EMPTY_LAYOUT)
        self.assertIsNot(self.driver.layout, old_layout)

    def test_node_lookup(self):
        self.driver.load("/repo")
        head = self.driver.commits[0]
        self.assertEqual(self.driver.node_for(head.hash).row, 0)
        self.assertIsNone(self.driver.node_for("f" * 40))


class TestCommitGraphDriverStaleResults(unittest.TestCase):
    def setUp(self):
        self.driver = CommitGraphDriver(initial_count=2, load_more_count=2)
        self.history = linear_history(5)

    def test_result_for_previous_branch_is_dropped(self):
        old_request = self.driver.reset("/repo", all_branches=False, branch="main")
        new_request = self.driver.reset("/repo", all_branches=False, branch="feature")

        self.assertFalse(self.driver.is_current(old_request))
        self.assertFalse(self.driver.apply_page(old_request, self.history[:2]))
        self.assertEqual(self.driver.commits, ())
        self.assertTrue(self.driver.is_loading)

        self.assertTrue(self.driver.apply_page(new_request, self.history[3:5]))
        self.assertEqual([c.hash for c in self.driver.commits], [c.hash for c in self.history[3:5]])

    def test_stale_error_is_dropped(self):
        old_request = self.driver.reset("/repo")
        self.driver.reset("/other")
        self.assertFalse(self.driver.apply_error(old_request, "boom"))
        self.assertIsNone(self.driver.error)

    def test_load_more_result_after_refresh_is_dropped(self):
        self.driver.apply_page(self.driver.reset("/repo"), self.history[:2])
        page_request = self.driver.next_page_request()
        self.driver.reset("/repo")
        self.assertFalse(self.driver.apply_page(page_request, self.history[:4]))
        self.assertEqual(len(self.driver.commits), 0)


class TestCommitGraphDriverErrors(unittest.TestCase):
    def setUp(self):
        self.repository = FakeRepository(linear_history(120))
        self.driver = CommitGraphDriver(self.repository, initial_count=50, load_more_count=50)

    def test_initial_failure_clears_history(self):
        self.repository.fail = True
        with self.assertLogs(level="WARNING"):
            self.assertFalse(self.driver.load("/repo"))
        self.assertEqual(self.driver.error, "fatal: bad revision")
        self.assertEqual(self.driver.commits, ())
        self.assertFalse(self.driver.has_more)
        self.assertFalse(self.driver.is_loading)

    def test_load_more_failure_keeps_loaded_commits(self):
        self.driver.load("/repo")
        layout = self.driver.layout
        self.repository.fail = True
        with self.assertLogs(level="WARNING"):
            self.assertFalse(self.driver.load_more())
        self.assertEqual(len(self.driver.commits), 50)
        self.assertIs(self.driver.layout, layout)
        self.assertIsNotNone(self.driver.error)

        # retry after the failure
        self.repository.fail = False
        self.assertTrue(self.driver.load_more())
        self.assertIsNone(self.driver.error)
        self.assertEqual(len(self.driver.commits), 100)


if __name__ == "__main__":
    unittest.main()
