"""Extraction of raw import specifiers from source text.

Each extractor takes a file path and its content and returns the specifiers
it finds, unresolved. Extractors are chosen per file extension from
:data:`EXTRACTORS`; every extractor listed for an extension runs and the
results are merged, so the regex scan for ECMAScript sources still catches
what the syntax-tree walk does not cover.
"""

import posixpath
import re
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from pr_testgen.logging import get_logger
from pr_testgen.models import RelationKind

logger = get_logger(__name__)


class RawSpecifier(NamedTuple):
    """An import string as written in a source file.

    Attributes:
        specifier: Path-like module reference (``./utils``, ``/lib/x.java``).
        kind: How the file references it.
        allow_fuzzy: Whether the resolver may fall back to basename
            similarity for this specifier.
    """

    specifier: str
    kind: RelationKind
    allow_fuzzy: bool = True


Extractor = Callable[[str, str], List[RawSpecifier]]


# ---------------------------------------------------------------------------
# Syntax-tree extraction (JavaScript / TypeScript)
# ---------------------------------------------------------------------------

_LANGUAGES: Dict[str, Language] = {}


def _get_language(name: str) -> Language:
    if name not in _LANGUAGES:
        if name == "javascript":
            _LANGUAGES[name] = Language(tree_sitter_javascript.language())
        elif name == "typescript":
            _LANGUAGES[name] = Language(tree_sitter_typescript.language_typescript())
        elif name == "tsx":
            _LANGUAGES[name] = Language(tree_sitter_typescript.language_tsx())
        else:
            raise ValueError(f"unsupported language: {name}")
    return _LANGUAGES[name]


GRAMMAR_BY_EXT = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}


def parse_source(path: str, content: str) -> Node:
    """Parse ECMAScript/TypeScript source into a syntax tree.

    tree-sitter recovers from syntax errors: the returned tree contains
    ERROR nodes where the source is malformed and every parseable
    construct around them.
    """
    ext = posixpath.splitext(path)[1].lower()
    parser = Parser(_get_language(GRAMMAR_BY_EXT.get(ext, "tsx")))
    tree = parser.parse(content.encode("utf-8"))
    if tree.root_node.has_error:
        logger.debug("partial_parse", path=path)
    return tree.root_node


def _string_value(node: Optional[Node]) -> Optional[str]:
    if node is None or node.type != "string" or node.text is None:
        return None
    text = node.text.decode("utf-8", errors="replace")
    return text[1:-1] if len(text) >= 2 else None


def _first_string_argument(call: Node) -> Optional[str]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None or not arguments.named_children:
        return None
    return _string_value(arguments.named_children[0])


def collect_specifiers(root: Node) -> List[RawSpecifier]:
    """Walk a syntax tree and collect module references.

    Collects static ``import``/``export ... from`` sources, ``require()``
    calls, TypeScript ``import x = require()`` and dynamic ``import()``
    calls. Only literal string arguments are considered.
    """
    found: List[RawSpecifier] = []
    stack = [root]
    while stack:
        node = stack.pop()
        value = None
        kind = RelationKind.IMPORT

        if node.type in ("import_statement", "export_statement"):
            value = _string_value(node.child_by_field_name("source"))
        elif node.type == "import_require_clause":
            value = _string_value(node.child_by_field_name("source"))
            kind = RelationKind.REQUIRE
        elif node.type == "call_expression":
            function = node.child_by_field_name("function")
            if function is not None and function.type == "import":
                value = _first_string_argument(node)
            elif function is not None and function.type == "identifier" and function.text == b"require":
                value = _first_string_argument(node)
                kind = RelationKind.REQUIRE

        if value:
            found.append(RawSpecifier(value, kind))
        stack.extend(reversed(node.children))
    return found


def extract_ecmascript_structured(path: str, content: str) -> List[RawSpecifier]:
    return collect_specifiers(parse_source(path, content))


# ---------------------------------------------------------------------------
# Pattern extraction
# ---------------------------------------------------------------------------

_ES_PATTERNS: Tuple[Tuple["re.Pattern[str]", RelationKind], ...] = (
    (re.compile(r"""\bimport\s+(?:type\s+)?(?:[\w*{}\s,$]+?\s+from\s+)?['"]([^'"\n]+)['"]"""), RelationKind.IMPORT),
    (re.compile(r"""\bexport\s+(?:type\s+)?[\w*{}\s,$]*?\s*from\s+['"]([^'"\n]+)['"]"""), RelationKind.IMPORT),
    (re.compile(r"""\bimport\s*\(\s*['"]([^'"\n]+)['"]\s*\)"""), RelationKind.IMPORT),
    (re.compile(r"""\brequire\s*\(\s*['"]([^'"\n]+)['"]\s*\)"""), RelationKind.REQUIRE),
    (re.compile(r"""\brequire\.resolve\s*\(\s*['"]([^'"\n]+)['"]\s*\)"""), RelationKind.REFERENCE),
    (re.compile(r"""\b(?:jest|vi)\.(?:mock|doMock|requireActual)\s*\(\s*['"]([^'"\n]+)['"]"""), RelationKind.REFERENCE),
    (re.compile(r"""^\s*///\s*<reference\s+path\s*=\s*['"]([^'"\n]+)['"]""", re.M), RelationKind.REFERENCE),
)


def extract_ecmascript_patterns(path: str, content: str) -> List[RawSpecifier]:
    found = []
    for pattern, kind in _ES_PATTERNS:
        for match in pattern.finditer(content):
            found.append(RawSpecifier(match.group(1).strip(), kind))
    return found


_PY_FROM_IMPORT = re.compile(r"^[ \t]*from[ \t]+(\.+)([\w.]*)[ \t]+import[ \t]+(\([^)]*\)|[^\n#]+)", re.M)


def _python_prefix(dots: int) -> str:
    # One dot is the current package, each extra dot one directory up
    return "./" if dots == 1 else "../" * (dots - 1)


def extract_python(path: str, content: str) -> List[RawSpecifier]:
    """Relative ``from`` imports; absolute imports name installed packages."""
    found = []
    for match in _PY_FROM_IMPORT.finditer(content):
        prefix = _python_prefix(len(match.group(1)))
        module = match.group(2).strip(".")
        if module:
            found.append(RawSpecifier(prefix + module.replace(".", "/"), RelationKind.IMPORT))
            continue
        for name in match.group(3).strip("()").split(","):
            name = name.strip().split(" ")[0]
            if name and name != "*":
                found.append(RawSpecifier(prefix + name, RelationKind.IMPORT))
    return found


_JAVA_IMPORT = re.compile(r"^\s*import\s+(static\s+)?([\w.]+?)(\.\*)?\s*;", re.M)

JAVA_SOURCE_ROOTS = ("src/main/java", "src/test/java", "src", "")


def _java_roots(path: str) -> List[str]:
    roots = []
    for marker in ("src/main/java/", "src/test/java/"):
        position = path.find(marker)
        if position > 0:
            module_root = path[:position].rstrip("/")
            roots.append(f"{module_root}/src/main/java")
            roots.append(f"{module_root}/src/test/java")
    for root in JAVA_SOURCE_ROOTS:
        if root not in roots:
            roots.append(root)
    return roots


def extract_java(path: str, content: str) -> List[RawSpecifier]:
    """``import pkg.Class;`` mapped to ``pkg/Class.java`` under each source root.

    Java imports carry no marker distinguishing project classes from library
    classes, so candidates are never resolved by name similarity.
    """
    found = []
    roots = _java_roots(path)
    for match in _JAVA_IMPORT.finditer(content):
        if match.group(1) or match.group(3):
            continue
        relative = match.group(2).replace(".", "/") + ".java"
        for root in roots:
            specifier = "/" + (f"{root}/{relative}" if root else relative)
            found.append(RawSpecifier(specifier, RelationKind.IMPORT, allow_fuzzy=False))
    return found


_GO_IMPORT_BLOCK = re.compile(r"^\s*import\s*\((.*?)\)", re.M | re.S)
_GO_IMPORT_LINE = re.compile(r"^\s*import\s+(?:[\w.]+\s+)?\"([^\"]+)\"", re.M)
_GO_QUOTED = re.compile(r"\"([^\"]+)\"")


def extract_go(path: str, content: str) -> List[RawSpecifier]:
    """Relative Go imports from both ``import ( ... )`` blocks and single lines."""
    paths = []
    for block in _GO_IMPORT_BLOCK.finditer(content):
        paths.extend(m.group(1) for m in _GO_QUOTED.finditer(block.group(1)))
    paths.extend(m.group(1) for m in _GO_IMPORT_LINE.finditer(content))
    return [
        RawSpecifier(p.strip(), RelationKind.IMPORT)
        for p in paths
        if p.strip().startswith(("./", "../"))
    ]


_RUBY_REQUIRE_RELATIVE = re.compile(r"""^\s*require_relative\s*\(?\s*['"]([^'"\n]+)['"]""", re.M)


def extract_ruby(path: str, content: str) -> List[RawSpecifier]:
    found = []
    for match in _RUBY_REQUIRE_RELATIVE.finditer(content):
        target = match.group(1).strip()
        if not target.startswith((".", "/")):
            target = "./" + target
        found.append(RawSpecifier(target, RelationKind.REQUIRE))
    return found


_GENERIC = re.compile(r"""(?:include|require|import|from)\s+['"]([./][^'"\n]+)['"]""")


def extract_generic(path: str, content: str) -> List[RawSpecifier]:
    return [RawSpecifier(m.group(1).strip(), RelationKind.REFERENCE) for m in _GENERIC.finditer(content)]


_ECMASCRIPT = (extract_ecmascript_structured, extract_ecmascript_patterns)

EXTRACTORS: Dict[str, Tuple[Extractor, ...]] = {
    **{ext: _ECMASCRIPT for ext in GRAMMAR_BY_EXT},
    ".py": (extract_python,),
    ".java": (extract_java,),
    ".go": (extract_go,),
    ".rb": (extract_ruby, extract_generic),
}

DEFAULT_EXTRACTORS: Tuple[Extractor, ...] = (extract_generic,)


def extractors_for(path: str) -> Tuple[Extractor, ...]:
    ext = posixpath.splitext(path)[1].lower()
    return EXTRACTORS.get(ext, DEFAULT_EXTRACTORS)


def extract_specifiers(path: str, content: str) -> List[RawSpecifier]:
    """Run every extractor registered for the file and merge the results.

    A failing extractor is logged and skipped; the others still run.

    Returns:
        Specifiers in discovery order, de-duplicated by (specifier, kind).
    """
    merged: List[RawSpecifier] = []
    seen = set()
    for extractor in extractors_for(path):
        try:
            specifiers = extractor(path, content)
        except Exception as e:
            logger.warning("extractor_failed", path=path, extractor=extractor.__name__, error=str(e))
            continue
        for raw in specifiers:
            key = (raw.specifier, raw.kind)
            if key not in seen:
                seen.add(key)
                merged.append(raw)
    return merged
