"""Rule-based analysis of natural-language task statements.

Maps a free-text statement to the structured parameters used for context
selection. Every decision is a deterministic regex match; there is no model
inference.
"""

import re
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger()


def _compile(patterns: list[str]) -> list[re.Pattern[str]]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


def _words(*words: str) -> list[re.Pattern[str]]:
    return _compile([rf"\b{re.escape(w)}\b" for w in words])


QUERY_TYPE_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "story": _compile([
        r"\b(create|write|draft|generate)\b.*\b(story|stories|user story|backlog)\b",
        r"\b(story|stories)\b.*\b(for|about|regarding)\b",
        r"\bwrite.*epic",
        r"\bcreate.*backlog",
    ]),
    "testing": _compile([
        r"\b(test|testing|qa|quality)\b",
        r"\b(write|create)\b.*\b(test|tests|test plan|test case)\b",
        r"\b(unit test|integration test|e2e test|end-to-end)\b",
    ]),
    "security": _compile([
        r"\b(security|secure|vulnerability|vulnerabilities|audit|penetration)\b",
        r"\b(review|audit|assess)\b.*\b(security|vulnerabilities)\b",
        r"\b(authentication|authorization|encryption|compliance)\b",
    ]),
    "architecture": _compile([
        r"\b(architecture|architectural|design|system design)\b",
        r"\b(design|architect|structure)\b.*\b(system|application|service)\b",
        r"\b(microservices|monolith|distributed|cloud)\b",
        r"\btech stack",
    ]),
    "architecture-diagrams": _compile([
        r"\b(diagram|diagrams|visual|visualization)\b",
        r"\b(draw|create|generate)\b.*\b(diagram|architecture|flowchart)\b",
        r"\b(mermaid|sequence diagram|flow diagram|component diagram)\b",
        r"\b(architecture|system|infrastructure)\b.*\b(diagram|chart)\b",
        r"\b(visualize|show|illustrate)\b.*\b(architecture|system|flow)\b",
    ]),
    "pr-review": _compile([
        r"\b(review|pr|pull request|merge request|code review)\b",
        r"\b(review|check|examine)\b.*\b(code|pr|pull request)\b",
    ]),
    "browser-testing": _compile([
        r"\b(browser|playwright|selenium|cypress|puppeteer)\b",
        r"\b(ui test|browser automation|e2e|end-to-end)\b",
    ]),
    "project-planning": _compile([
        r"\b(plan|planning|project|roadmap|timeline)\b",
        r"\b(project)\b.*\b(plan|planning|management)\b",
        r"\b(sprint|milestone|release)\b",
    ]),
    "story-breakdown": _compile([
        r"\b(breakdown|break down|decompose|split)\b",
        r"\b(epic)\b.*\b(into|to)\b.*\b(stories|tasks)\b",
        r"\b(break|split|divide)\b.*\b(epic|story)\b",
    ]),
    "documentation": _compile([
        r"\b(document|documentation|doc|docs|confluence)\b",
        r"\b(write|create)\b.*\b(documentation|guide|readme)\b",
        r"\b(technical|api|user)\b.*\b(documentation|guide)\b",
    ]),
    "flow-diagrams": _compile([
        r"\b(flow|flowchart|process flow|workflow)\b",
        r"\b(user journey|user flow|process diagram)\b",
        r"\b(sequence|swimlane|state)\b.*\b(diagram|flow)\b",
    ]),
    "infrastructure": _compile([
        r"\b(infrastructure|terraform|cloudformation|iac|kubernetes|docker)\b",
        r"\b(deploy|deployment|devops|ci/cd|pipeline)\b",
        r"\b(aws|azure|gcp|cloud)\b",
    ]),
}

INTENT_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "create": _compile([
        r"\b(create|write|draft|generate|build|make|develop)\b",
        r"\bnew\b",
    ]),
    "refine": _compile([
        r"\b(improve|enhance|refine|optimize|polish|update)\b",
        r"\b(better|refactor)\b",
    ]),
    "breakdown": _compile([
        r"\b(breakdown|break down|decompose|split|divide)\b",
        r"\binto\b.*\b(smaller|tasks|subtasks)\b",
    ]),
    "review": _compile([r"\b(review|audit|check|examine|assess|evaluate)\b"]),
    "plan": _compile([r"\b(plan|design|architect|strategize)\b", r"\bhow to\b"]),
    "implement": _compile([r"\b(implement|code|develop|build)\b", r"\bwrite.*code"]),
}

SCOPE_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "epic": _compile([r"\bepic\b", r"\blarge feature\b", r"\bmajor feature\b"]),
    "story": _compile([r"\bstory\b", r"\buser story\b", r"\bfeature\b"]),
    "subtask": _compile([r"\bsubtask\b", r"\btask\b", r"\bsmall\b"]),
    "portfolio": _compile([r"\bportfolio\b", r"\bmultiple epic"]),
    "theme": _compile([r"\btheme\b", r"\binitiative\b", r"\bbusiness objective"]),
    "spike": _compile([
        r"\bspike\b",
        r"\bresearch\b",
        r"\bproof of concept\b",
        r"\bpoc\b",
    ]),
}

# Checked in this order regardless of where the words appear
COMPLEXITY_PATTERNS: list[tuple[str, float, list[re.Pattern[str]]]] = [
    ("critical", 0.9, _words(
        "critical",
        "high-risk",
        "security-sensitive",
        "mission-critical",
        "payment",
        "financial",
        "compliance",
    )),
    ("complex", 0.8, _words(
        "complex",
        "advanced",
        "sophisticated",
        "multi-tier",
        "microservices",
        "distributed",
        "scalable",
    )),
    ("simple", 0.7, _words("simple", "basic", "straightforward", "easy", "quick")),
    ("medium", 0.6, _words("medium", "moderate", "standard")),
]

OUTPUT_FORMAT_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "jira": _words("jira", "issue", "ticket"),
    "confluence": _words("confluence", "wiki", "documentation"),
    "github": _words("github", "gh"),
    "gitlab": _words("gitlab"),
}

DOMAIN_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "security": _words(
        "security", "authentication", "authorization", "encryption", "vulnerability"
    ),
    "payments": _words("payment", "pci", "transaction", "billing"),
    "compliance": _words("compliance", "gdpr", "hipaa", "soc2", "regulatory"),
    "performance": _words(
        "performance", "optimization", "scale", "latency", "throughput"
    ),
    "accessibility": _words("accessibility", "a11y", "wcag", "screen reader"),
    "data": _words("data", "database", "etl", "data pipeline"),
    "infrastructure": _words("infrastructure", "kubernetes", "docker", "terraform"),
    "api": _words("api", "rest", "graphql", "endpoint"),
    "frontend": _words("frontend", "ui", "react", "vue", "angular"),
    "backend": _words("backend", "server", "node", "python", "java"),
}

INTENT_QUERY_TYPES = {
    "breakdown": "story-breakdown",
    "review": "pr-review",
    "plan": "architecture",
    "implement": "documentation",
}

INTENT_CONFIDENCE = 0.8
SCOPE_CONFIDENCE = 0.7
INFERENCE_BONUS = 0.3


@dataclass
class AnalyzedIntent:
    """Structured parameters inferred from a statement."""

    query_type: str
    task_intent: str
    confidence: float
    reasoning: list[str] = field(default_factory=list)
    scope: str | None = None
    complexity: str | None = None
    output_format: str | None = None
    domain_focus: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict, omitting undetected fields."""
        data = {
            "query_type": self.query_type,
            "task_intent": self.task_intent,
            "scope": self.scope,
            "complexity": self.complexity,
            "output_format": self.output_format,
            "domain_focus": self.domain_focus,
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
        }
        return {k: v for k, v in data.items() if v is not None}


def _any_match(patterns: list[re.Pattern[str]], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def _first_family(families: dict[str, list[re.Pattern[str]]], text: str) -> str | None:
    for name, patterns in families.items():
        if _any_match(patterns, text):
            return name
    return None


class IntentAnalyzer:
    """Classifies task statements with fixed pattern tables."""

    def detect_query_type(self, text: str) -> tuple[str, float] | None:
        """Score every query type; the first with the strictly highest score wins.

        Returns:
            (query_type, confidence) or None when nothing matched
        """
        best: tuple[str, float] | None = None
        highest = 0.0
        for query_type, patterns in QUERY_TYPE_PATTERNS.items():
            score = sum(
                1.0 if r"\b" in p.pattern else 0.5 for p in patterns if p.search(text)
            )
            if score > highest:
                highest = score
                best = (query_type, min(score / len(patterns), 1.0))
        return best

    def detect_task_intent(self, text: str) -> str | None:
        return _first_family(INTENT_PATTERNS, text)

    def detect_scope(self, text: str) -> str | None:
        return _first_family(SCOPE_PATTERNS, text)

    def detect_complexity(self, text: str) -> tuple[str, float] | None:
        for level, confidence, patterns in COMPLEXITY_PATTERNS:
            if _any_match(patterns, text):
                return level, confidence
        return None

    def detect_output_format(self, text: str) -> str | None:
        return _first_family(OUTPUT_FORMAT_PATTERNS, text)

    def detect_domains(self, text: str) -> list[str]:
        return [name for name, patterns in DOMAIN_PATTERNS.items() if _any_match(patterns, text)]

    def analyze(self, statement: str) -> AnalyzedIntent:
        """Analyze a statement.

        Args:
            statement: Free text; may be empty

        Returns:
            The inferred parameters. ``query_type`` and ``task_intent`` are
            always set; confidence is within [0, 1].
        """
        text = (statement or "").strip().lower()
        reasoning = []
        confidence = 0.0

        detected_type = self.detect_query_type(text)
        if detected_type:
            query_type, type_confidence = detected_type
            reasoning.append(
                f"Detected query type: {query_type} "
                f"(confidence: {round(type_confidence, 2)})"
            )
            confidence += type_confidence * 0.4

        task_intent = self.detect_task_intent(text)
        if task_intent:
            reasoning.append(
                f"Detected task intent: {task_intent} (confidence: {INTENT_CONFIDENCE})"
            )
            confidence += INTENT_CONFIDENCE * 0.2

        scope = self.detect_scope(text)
        if scope:
            reasoning.append(f"Detected scope: {scope} (confidence: {SCOPE_CONFIDENCE})")
            confidence += SCOPE_CONFIDENCE * 0.15

        complexity = None
        detected_complexity = self.detect_complexity(text)
        if detected_complexity:
            complexity, complexity_confidence = detected_complexity
            reasoning.append(
                f"Detected complexity: {complexity} "
                f"(confidence: {complexity_confidence})"
            )
            confidence += complexity_confidence * 0.1

        output_format = self.detect_output_format(text)
        if output_format:
            reasoning.append(f"Detected output format: {output_format}")
            confidence += 0.05

        domains = self.detect_domains(text)
        if domains:
            reasoning.append(f"Detected domain focus: {', '.join(domains)}")
            confidence += 0.1

        if detected_type is None:
            query_type = INTENT_QUERY_TYPES.get(task_intent or "", "story")
            reasoning.append(f"Inferred query type from context: {query_type}")
            confidence += INFERENCE_BONUS

        result = AnalyzedIntent(
            query_type=query_type,
            task_intent=task_intent or "create",
            scope=scope,
            complexity=complexity,
            output_format=output_format,
            domain_focus=domains or None,
            confidence=min(confidence, 1.0),
            reasoning=reasoning,
        )
        logger.debug(
            "intent.analyzed",
            query_type=result.query_type,
            confidence=round(result.confidence, 3),
        )
        return result
