"""
Pattern tables for commit and chat classification.

Every table is an immutable, ordered tuple. Order is significant:
commit types resolve first-match-wins and chat intents break score ties by
declaration order, so entries must not be reordered.
"""

import re
from typing import NamedTuple

_I = re.IGNORECASE


class PatternGroup(NamedTuple):
    """A labelled set of regular expressions."""

    label: str
    patterns: tuple[re.Pattern[str], ...]

    def matches(self, text: str) -> bool:
        """Return True if any pattern in the group matches ``text``."""
        return any(p.search(text) for p in self.patterns)

    def match_count(self, text: str) -> int:
        """Number of patterns in the group that match ``text``."""
        return sum(1 for p in self.patterns if p.search(text))


def _group(label: str, *patterns: str, flags: int = _I) -> PatternGroup:
    return PatternGroup(label, tuple(re.compile(p, flags) for p in patterns))


def first_match(groups: tuple[PatternGroup, ...], text: str) -> str | None:
    """Label of the first group whose patterns match ``text``, or None."""
    for group in groups:
        if group.matches(text):
            return group.label
    return None


# --- Commit types (first match wins) ---

COMMIT_TYPE_PATTERNS: tuple[PatternGroup, ...] = (
    _group(
        "feat",
        r"^feat(\(.+\))?:",
        r"^feature",
        r"add(ed)?\s+.*(feature|support|integration)",
    ),
    _group("fix", r"^fix(\(.+\))?:", r"^bugfix", r"fix(ed)?\s+(bug|issue|error|crash)"),
    _group(
        "refactor",
        r"^refactor",
        r"refactor(ed|ing)?",
        r"restructur",
        r"cleanup",
        r"clean up",
    ),
    _group(
        "docs",
        r"^docs?(\(.+\))?:",
        r"update[d]?\s+readme",
        r"add[ed]?\s+docs?",
        r"documentation",
    ),
    _group("test", r"^test(\(.+\))?:", r"add[ed]?\s+tests?", r"unit test", r"e2e"),
    _group(
        "chore",
        r"^chore(\(.+\))?:",
        r"bump\s+version",
        r"update\s+depend",
        r"merge\s+(branch|pull)",
    ),
    _group("style", r"^style(\(.+\))?:", r"format(t?ing)?", r"linting?", r"whitespace"),
    _group("perf", r"^perf(\(.+\))?:", r"optimiz", r"performance", r"speed(up)?"),
    _group("ci", r"^ci(\(.+\))?:", r"github actions?", r"pipeline", r"workflow"),
    _group("revert", r"^revert", r"roll(ed)?\s*back"),
    _group(
        "security",
        r"secur(e|ity)",
        r"vulnerabilit",
        r"CVE-",
        r"auth(entication|orization)\s+fix",
    ),
    _group("deploy", r"deploy", r"release", r"ship(ped)?"),
)

COMMIT_TYPES: tuple[str, ...] = tuple(group.label for group in COMMIT_TYPE_PATTERNS)
DEFAULT_COMMIT_TYPE = "chore"

CONVENTIONAL_PREFIX = re.compile(
    r"^(feat|fix|docs|style|refactor|test|chore|perf|ci|revert|security|deploy)"
    r"(\(.+\))?:\s*",
    _I,
)

# --- File paths ---

HIGH_IMPACT_PATHS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, _I)
    for p in (
        r"schema\.(sql|ts|js|prisma)",
        r"migration",
        r"auth.*\.(ts|js)",
        r"middleware\.(ts|js)",
        r"package\.json",
        r"\.env",
        r"config\.(ts|js|json)",
        r"database",
        r"api/.*route\.(ts|js)",
    )
)

TEST_FILE_PATH = re.compile(r"test|spec|__test__", _I)
NON_CODE_FILE_PATH = re.compile(r"\.md$|\.txt$|\.json$", _I)

# --- Diff content categories ---

DIFF_PATTERNS: tuple[PatternGroup, ...] = (
    _group(
        "security",
        r"password|secret|token|api.?key|credential|bcrypt|hash|encrypt|decrypt|auth",
    ),
    _group(
        "database",
        r"CREATE TABLE|ALTER TABLE|DROP|INSERT INTO|SELECT|UPDATE.*SET|DELETE FROM"
        r"|migration|\.sql",
    ),
    _group(
        "api",
        r"endpoint|route|handler|middleware|req\.|res\.|NextResponse|NextRequest"
        r"|fetch\(",
    ),
    _group(
        "test",
        r"describe\(|it\(|test\(|expect\(|assert|mock|jest|vitest|beforeEach|afterEach",
    ),
    _group("config", r"\.env|process\.env|config\.|settings\.|\.json|\.yaml|\.yml"),
    _group(
        "dependency",
        r"import\s+.*from|require\(|package\.json|node_modules|dependencies",
    ),
)

DIFF_RISK_WEIGHTS: dict[str, int] = {"security": 3, "database": 2, "api": 1}

# --- Chat intents ---

BLOCKER = _group(
    "blocker",
    r"stuck\s+on",
    r"blocked\s+(by|on)",
    r"can'?t\s+(figure|get|make|do|fix|run|start)",
    r"not\s+working",
    r"failing\s+(tests?|build|ci)",
    r"broken",
    r"error\s+(with|in|when)",
    r"help\s+(me|needed|please)",
    r"anyone\s+know",
    r"issue\s+with",
    r"problem\s+with",
    r"merge\s+conflict",
)

TASK_CLAIM = _group(
    "task_claim",
    r"i'?m?\s+(working|handling|doing|taking)\s+(on|care)",
    r"i'?ll?\s+(do|handle|take|work\s+on|implement|build|fix)",
    r"assigned\s+(to\s+me|myself)",
    r"mine\s+to\s+(do|handle)",
    r"on\s+it",
)

PROGRESS_UPDATE = _group(
    "progress_update",
    r"done\s+with",
    r"finished",
    r"completed",
    r"pushed",
    r"merged",
    r"deployed",
    r"working\s+now",
    r"fixed",
    r"implemented",
    r"just\s+pushed",
    r"pr\s+(is\s+)?(up|open|ready)",
)

QUESTION_MARK = re.compile(r"\?")
ANNOUNCEMENT_OPENER = re.compile(r"^(hey|fyi|heads up|announcement|reminder|note)", _I)
REPEATED_EXCLAMATION = re.compile(r"!{2,}")
URGENCY = re.compile(r"urgent|critical|asap|emergency|showstopper|deadline", _I)

# Declaration order is the tie-break order.
MESSAGE_INTENTS: tuple[str, ...] = (
    "blocker",
    "task_claim",
    "progress_update",
    "question",
    "announcement",
    "general",
)

TASK_CLAIM_DESCRIPTION = re.compile(
    r"(?:working on|doing|implementing|building|fixing|taking|handling)\s+"
    r"(.{5,80}?)(?:[.,!?]|$)",
    _I,
)
TASK_PHRASE = re.compile(
    r"(?:working on|doing|implementing|building|fixing)\s+(.{5,50}?)(?:[.,!?]|$)",
    _I,
)
MENTION = re.compile(r"@(\w+)")

# --- Technical vocabulary (result order follows this tuple) ---

TECH_TERMS: tuple[str, ...] = (
    "api", "database", "db", "auth", "authentication", "jwt", "oauth",
    "frontend", "backend", "fullstack", "deploy", "deployment", "ci", "cd",
    "git", "github", "branch", "commit", "merge", "pull request", "pr",
    "bug", "fix", "feature", "test", "build", "pipeline", "docker",
    "server", "client", "endpoint", "route", "schema", "migration",
    "typescript", "javascript", "react", "next", "node", "python",
    "supabase", "postgres", "sql", "redis", "webhook", "socket",
    "kubernetes", "k8s", "aws", "azure", "gcp", "vercel", "netlify",
    "graphql", "rest", "grpc", "websocket", "sse", "oauth2",
    "css", "tailwind", "sass", "html", "dom", "component", "hook",
    "middleware", "proxy", "nginx", "load balancer", "cache", "cdn",
)  # fmt: skip

# --- Named-entity shapes ---

NER_PATTERNS: dict[str, re.Pattern[str]] = {
    "file_paths": re.compile(r"(?:[\w-]+/)+[\w-]+\.\w+"),
    "issue_refs": re.compile(r"#(\d+)"),
    "urls": re.compile(r"https?://[^\s<>]+"),
    "versions": re.compile(r"v?\d+\.\d+(?:\.\d+)?(?:-[\w.]+)?"),
    "error_codes": re.compile(r"(?:error|status|code)\s*[:=]?\s*(\d{3,})", _I),
    "environments": re.compile(
        r"\b(production|staging|development|dev|prod|stage|test|qa)\b", _I
    ),
    "branch_names": re.compile(
        r"\b(?:main|master|develop|feature/[\w-]+|bugfix/[\w-]+|hotfix/[\w-]+"
        r"|release/[\w-]+)\b"
    ),
    "time_expressions": re.compile(
        r"\b(?:today|yesterday|tomorrow|last\s+(?:week|month|sprint)"
        r"|this\s+(?:week|month|sprint)|(?:since|before|after)\s+\w+day)\b",
        _I,
    ),
}
