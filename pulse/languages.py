"""
pulse.languages
AUTHOR: carter-vin

Map a file path to a canonical language tag

Lookup order (first hit wins):
1. extension of the final path component (last suffix only)
2. stem (filename with the last extension stripped)
3. full filename
4. FALLBACK_TAG

One alias table serves all three tiers, so extensionless build files
("Makefile") and extensions ("rs") live side by side. A file named after an
alias ("go", "go.mod") matches that alias; this precedence is kept as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable, Optional

from pulse.logging import DebugLog, get_debug_log

FALLBACK_TAG = "txt"


@dataclass(frozen=True)
class LanguageRule:
    """
    Aliases (lower-case, no leading dot for extensions) -> canonical tag
    """

    aliases: frozenset[str]
    tag: str


def rule(tag: str, *aliases: str) -> LanguageRule:
    return LanguageRule(aliases=frozenset(a.lower() for a in aliases), tag=tag)


# Declaration order matters when aliases overlap.
DEFAULT_RULES: tuple[LanguageRule, ...] = (
    rule("python", "py", "pyw", "pyi", "pyx"),
    rule("rust", "rs"),
    rule("c", "c", "h", "makefile", "mk", "gnumakefile"),
    rule("cpp", "cpp", "cc", "cxx", "hpp", "hh", "hxx"),
    rule("go", "go"),
    rule("javascript", "js", "mjs", "cjs", "jsx"),
    rule("typescript", "ts", "tsx", "mts"),
    rule("java", "java"),
    rule("kotlin", "kt", "kts"),
    rule("scala", "scala", "sc", "sbt"),
    rule("csharp", "cs"),
    rule("swift", "swift"),
    rule("ruby", "rb", "gemfile", "rakefile", "gemspec"),
    rule("php", "php"),
    rule("perl", "pl", "pm"),
    rule("lua", "lua"),
    rule("haskell", "hs", "lhs"),
    rule("ocaml", "ml", "mli"),
    rule("elixir", "ex", "exs"),
    rule("erlang", "erl", "hrl"),
    rule("clojure", "clj", "cljs", "cljc", "edn"),
    rule("emacs-lisp", "el", ".emacs"),
    rule("lisp", "lisp", "lsp", "cl"),
    rule("shell", "sh", "bash", "zsh", ".bashrc", ".zshrc", ".profile"),
    rule("sql", "sql"),
    rule("html", "html", "htm", "xhtml"),
    rule("css", "css", "scss", "sass", "less"),
    rule("json", "json"),
    rule("yaml", "yml", "yaml"),
    rule("toml", "toml"),
    rule("markdown", "md", "markdown"),
    rule("dockerfile", "dockerfile"),
    rule("cmake", "cmake", "cmakelists.txt"),
)


@dataclass(frozen=True)
class PathParts:
    """
    Normalized lookup keys for one path
    """

    filename: str
    extension: str
    stem: str


def split_path(path: str) -> PathParts:
    """
    Split into lower-cased lookup keys

    - "src/main.RS" -> ("main.rs", "rs", "main")
    - "a.tar.gz"    -> ("a.tar.gz", "gz", "a.tar")
    - ".bashrc"     -> (".bashrc", "", ".bashrc")
    - "src/"        -> ("src", "", "src")
    """
    name = PurePath(path).name
    suffix = PurePath(name).suffix if name else ""
    stem = name[: -len(suffix)] if suffix else name
    return PathParts(
        filename=name.lower(),
        extension=suffix[1:].lower(),
        stem=stem.lower(),
    )


class LanguageClassifier:
    """
    Ordered alias-table classifier; classify() never raises
    """

    def __init__(
        self,
        rules: Iterable[LanguageRule] = DEFAULT_RULES,
        *,
        log: Optional[DebugLog] = None,
    ) -> None:
        self.rules = tuple(rules)
        self._log = log

    @property
    def log(self) -> DebugLog:
        return self._log if self._log is not None else get_debug_log()

    def lookup(self, alias: str) -> Optional[str]:
        if not alias:
            return None
        for r in self.rules:
            if alias in r.aliases:
                return r.tag
        return None

    def classify(self, path: str) -> str:
        parts = split_path(path or "")

        matched_on = "fallback"
        tag = FALLBACK_TAG
        for tier, key in (
            ("extension", parts.extension),
            ("stem", parts.stem),
            ("filename", parts.filename),
        ):
            found = self.lookup(key)
            if found is not None:
                matched_on, tag = tier, found
                break

        self.log.emit(
            "language_classified",
            path=path,
            extension=parts.extension,
            stem=parts.stem,
            filename=parts.filename,
            matched_on=matched_on,
            language=tag,
        )
        return tag


_default_classifier = LanguageClassifier()


def classify(path: str) -> str:
    """
    Classify with the default alias table
    """
    return _default_classifier.classify(path)
