"""File-pattern agent matcher.

Recommends specialist agents for a set of file paths by testing each path
against a fixed table of glob rules.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

DEFAULT_AGENT = "a-tech-lead"

_DOUBLE_STAR = "\x00"


@dataclass(frozen=True)
class PatternRule:
    pattern: str
    agents: tuple[str, ...]


DEFAULT_PATTERNS: tuple[PatternRule, ...] = (
    PatternRule("backend/**/*.py", ("a-backend-engineer",)),
    PatternRule("api/**/*", ("a-backend-engineer",)),
    PatternRule("**/services/**/*.py", ("a-backend-engineer",)),
    PatternRule("frontend/**/*.tsx", ("a-frontend-developer",)),
    PatternRule("frontend/**/*.ts", ("a-frontend-developer",)),
    PatternRule("**/components/**/*", ("a-frontend-developer",)),
    PatternRule("**/*.css", ("a-frontend-developer",)),
    PatternRule("tests/**/*", ("a-qa-engineer",)),
    PatternRule("**/test_*.py", ("a-qa-engineer",)),
    PatternRule("**/*.test.ts", ("a-qa-engineer",)),
    PatternRule("**/*.spec.ts", ("a-qa-engineer",)),
    PatternRule("Dockerfile", ("a-devops-engineer",)),
    PatternRule("**/Dockerfile", ("a-devops-engineer",)),
    PatternRule("infra/**/*", ("a-devops-engineer",)),
    PatternRule("*.tf", ("a-devops-engineer",)),
    PatternRule(".github/workflows/*.yml", ("a-devops-engineer",)),
    PatternRule("**/migrations/**/*", ("a-database-engineer",)),
    PatternRule("**/*.sql", ("a-database-engineer",)),
    PatternRule("**/auth/**/*", ("a-security-engineer",)),
    PatternRule("docs/**/*", ("a-technical-writer",)),
)


@dataclass
class AgentRecommendation:
    """An agent recommended for some of the input files."""

    agent_id: str
    match_count: int
    files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "match_count": self.match_count,
            "files": list(self.files),
        }


@dataclass
class MatcherError:
    """Input that cannot be matched; returned rather than raised."""

    error: str
    usage: str = "Provide file_paths (list of strings) or file_path (string)"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "usage": self.usage}


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob to an anchored regex.

    ``*`` matches within one path segment, ``**`` matches across segments
    and ``?`` matches one character. The substitutions run in a fixed order
    so that dots inserted by later steps are not escaped.
    """
    regex = pattern.replace(".", r"\.")
    regex = regex.replace("**", _DOUBLE_STAR)
    regex = regex.replace("*", "[^/]*")
    regex = regex.replace(_DOUBLE_STAR, ".*")
    regex = regex.replace("?", ".")
    return re.compile(f"^{regex}$")


def match_path(
    path: str, rules: tuple[PatternRule, ...] = DEFAULT_PATTERNS
) -> list[str]:
    """Get every agent whose rules match a path, in table order.

    Unmatched paths get the default agent.
    """
    agents = [
        agent
        for rule in rules
        if glob_to_regex(rule.pattern).match(path)
        for agent in rule.agents
    ]
    return agents or [DEFAULT_AGENT]


def recommend_agents(
    paths: Any, rules: tuple[PatternRule, ...] = DEFAULT_PATTERNS
) -> list[AgentRecommendation] | MatcherError:
    """Rank agents by how many rule matches they collect across paths.

    Args:
        paths: File paths relative to the project root

    Returns:
        Recommendations by descending match count then agent id, or a
        MatcherError when no usable paths were given
    """
    if not isinstance(paths, list | tuple):
        return MatcherError(error="no file paths provided")
    cleaned = [p.strip() for p in paths if isinstance(p, str) and p.strip()]
    if not cleaned:
        return MatcherError(error="no file paths provided")

    counts: Counter[str] = Counter()
    files: dict[str, list[str]] = {}
    for path in cleaned:
        for agent in match_path(path, rules):
            counts[agent] += 1
            agent_files = files.setdefault(agent, [])
            if path not in agent_files:
                agent_files.append(path)

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        AgentRecommendation(agent_id=agent, match_count=count, files=files[agent])
        for agent, count in ranked
    ]
