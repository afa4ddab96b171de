# git_log_parser.py

from git_graph_data import Commit

# Delimiters for parsing git log output
FIELD_SEP = "\x01"
ENTRY_SEP = "\x02"

# Git log format string
# %H: commit hash
# %h: abbreviated hash
# %P: parent hashes (space separated)
# %an: author name
# %ae: author email
# %at: author date (unix timestamp)
# %s: subject
GIT_LOG_FORMAT = f"%H{FIELD_SEP}%h{FIELD_SEP}%P{FIELD_SEP}%an{FIELD_SEP}%ae{FIELD_SEP}%at{FIELD_SEP}%s{ENTRY_SEP}"
FIELD_COUNT = 7


def _parse_timestamp(raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        return 0


def parse_commit_log(log_output: str) -> list[Commit]:
    """
    Parses `git log --pretty=format:GIT_LOG_FORMAT` output into Commit objects.
    Order is preserved; with --topo-order that is children before parents.
    Entries with missing fields are skipped.
    """
    commits: list[Commit] = []
    if not log_output or not log_output.strip():
        return commits

    for entry in log_output.split(ENTRY_SEP):
        # git puts a newline between entries
        entry = entry.strip("\r\n")
        if not entry.strip():
            continue

        parts = entry.split(FIELD_SEP, FIELD_COUNT - 1)
        if len(parts) < FIELD_COUNT:
            continue

        sha, short_sha, parent_hashes_str, author_name, author_email, raw_timestamp, subject = parts
        sha = sha.strip()
        if not sha:
            continue

        commits.append(
            Commit(
                hash=sha,
                short_hash=short_sha.strip(),
                parent_hashes=tuple(parent_hashes_str.split()),
                author_name=author_name,
                author_email=author_email,
                timestamp=_parse_timestamp(raw_timestamp),
                summary=subject,
            )
        )

    return commits
