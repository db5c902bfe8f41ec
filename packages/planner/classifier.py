"""
Request Classifier - Decide what a chat message asks for

Takes a free-text message plus two context flags and picks exactly one intent:

    "create new project with auth"     -> NEW_PROJECT (0.9), whatever the context
    "add jotai"  + selected repository -> REPOSITORY_MODIFICATION (0.85)
    "add jotai"  + active project      -> PROJECT_MODIFICATION (0.8)
    anything else                      -> NEW_PROJECT (0.6)

Rule-based substring matching, case-insensitive. Pure: no I/O, no state.
"""

from typing import List

from protocol import Classification, Intent


EXPLICIT_NEW_PROJECT_CONFIDENCE = 0.9


class RequestClassifier:
    """
    Priority-ordered keyword classifier. First matching rule wins.
    """

    NEW_PROJECT_KEYWORDS = [
        "create project", "new project", "create new project", "build app",
        "generate app", "scaffold", "start new", "make a", "build a new",
        "create a new"
    ]

    MODIFICATION_KEYWORDS = [
        "add", "install", "include", "integrate", "update", "upgrade", "modify",
        "change", "remove", "delete", "uninstall", "configure", "setup", "enable",
        "disable", "implement", "create component", "create hook", "create page",
        "create util", "refactor", "optimize", "fix", "debug", "test", "improve"
    ]

    def classify(
        self,
        text: str,
        has_selected_repository: bool,
        has_current_project: bool
    ) -> Classification:
        """
        Classify a chat message.

        Args:
            text: Raw user message
            has_selected_repository: A repository is currently selected
            has_current_project: A project is currently active

        Returns:
            Classification with intent, confidence and reason
        """
        text_lower = text.lower()

        # 1. Explicit new-project phrasing overrides any context
        if self._contains_any(text_lower, self.NEW_PROJECT_KEYWORDS):
            return Classification(
                intent=Intent.NEW_PROJECT,
                confidence=EXPLICIT_NEW_PROJECT_CONFIDENCE,
                reason="Explicit new project keywords detected"
            )

        is_modification = self._is_modification(text_lower)

        # 2. Repository context outranks project context
        if has_selected_repository and is_modification:
            return Classification(
                intent=Intent.REPOSITORY_MODIFICATION,
                confidence=0.85,
                reason="Repository context + modification keywords"
            )

        # 3. Project context
        if has_current_project and is_modification:
            return Classification(
                intent=Intent.PROJECT_MODIFICATION,
                confidence=0.8,
                reason="Project context + modification keywords"
            )

        # 4. Default
        return Classification(
            intent=Intent.NEW_PROJECT,
            confidence=0.6,
            reason="No clear modification context, defaulting to new project"
        )

    # ==================== Keyword tests ====================

    def _is_modification(self, text_lower: str) -> bool:
        # Covers short commands too: a whole-word keyword is also a substring
        return self._contains_any(text_lower, self.MODIFICATION_KEYWORDS)

    @staticmethod
    def _contains_any(text_lower: str, keywords: List[str]) -> bool:
        return any(keyword in text_lower for keyword in keywords)


_default_classifier = RequestClassifier()


def classify(
    text: str,
    has_selected_repository: bool,
    has_current_project: bool
) -> Classification:
    """Classify with the shared default instance."""
    return _default_classifier.classify(text, has_selected_repository, has_current_project)


def is_explicit_new_project(classification: Classification) -> bool:
    """True only for explicit new-project phrasing, not the fallback default."""
    return (
        classification.intent == Intent.NEW_PROJECT
        and classification.confidence >= EXPLICIT_NEW_PROJECT_CONFIDENCE
    )
