"""Include/exclude path rules.

Rules are glob patterns; a rule starting with ``!`` excludes. A path is
eligible when no include rule exists or one of them matches, and no exclude
rule matches.
"""

import fnmatch
from typing import Iterable, List, Optional, Tuple


def _glob_match(path: str, pattern: str) -> bool:
    if fnmatch.fnmatchcase(path, pattern):
        return True
    # "dir/**" also covers the directory itself
    if pattern.endswith("/**") and path == pattern[:-3]:
        return True
    # "**/x" also matches "x" at the repository root
    if pattern.startswith("**/"):
        return fnmatch.fnmatchcase(path, pattern[3:])
    return False


class PathFilter:
    """Glob-based path predicate.

    Example:
        >>> f = PathFilter(["src/**", "!**/*.min.js"])
        >>> f.matches("src/app.js"), f.matches("src/vendor.min.js")
        (True, False)
    """

    def __init__(self, rules: Optional[Iterable[str]] = None):
        self.rules: List[Tuple[str, bool]] = []
        for rule in rules or ():
            rule = (rule or "").strip()
            if not rule:
                continue
            if rule.startswith("!"):
                self.rules.append((rule[1:].strip(), True))
            else:
                self.rules.append((rule, False))

    def matches(self, path: str) -> bool:
        if not self.rules:
            return True

        included = False
        inclusion_rule_exists = False
        for pattern, exclude in self.rules:
            if exclude:
                if _glob_match(path, pattern):
                    return False
                continue
            inclusion_rule_exists = True
            if not included and _glob_match(path, pattern):
                included = True

        return included or not inclusion_rule_exists

    def excludes(self, path: str) -> bool:
        """True if an exclude rule matches the path."""
        return any(exclude and _glob_match(path, pattern) for pattern, exclude in self.rules)

    def __repr__(self) -> str:
        rendered = [("!" if exclude else "") + pattern for pattern, exclude in self.rules]
        return f"PathFilter({rendered!r})"
