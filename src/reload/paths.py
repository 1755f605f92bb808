"""Path and namespace helpers.

Maps source file paths to namespace identifiers and namespaces back to
URLs the browser can fetch from the dev server.
"""
import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, List, Any

from ..core.config_manager import ReloadConfig

logger = logging.getLogger(__name__)

class ExtensionClass(Enum):
    COMPILED = "cljs"   # translated one-to-one into a JS file
    MACRO = "clj"       # only evaluated at build time (macros)
    OTHER = "other"

_EXTENSION_CLASSES = {
    ".cljs": ExtensionClass.COMPILED,
    ".clj": ExtensionClass.MACRO,
}

def split_ext(path: str) -> Tuple[str, Optional[str]]:
    """Returns `(name, extension)` of the last path segment.

    A leading dot does not start an extension, so `.gitignore` has none.
    """
    base = os.path.basename(norm_path(path))
    i = base.rfind(".")
    if i > 0:
        return base[:i], base[i:]
    return base, None

def classify(path: str) -> ExtensionClass:
    _, ext = split_ext(path)
    return _EXTENSION_CLASSES.get(ext, ExtensionClass.OTHER)

def norm_path(path: str) -> str:
    """Normalize paths to a forward slash separator to fix windows paths"""
    return str(path).replace("\\", "/")

def underscore(name: str) -> str:
    return name.replace("-", "_")

def ns_to_path(ns: str) -> str:
    return ns.replace(".", "/")

# -- namespace reader --------------------------------------------------------

class ReadError(Exception):
    """The first form of a source file could not be read"""

class Symbol(str):
    """A bare token read from source, as opposed to a string literal"""

_CLOSERS = {"(": ")", "[": "]", "{": "}"}
_WHITESPACE = " \t\r\n\f\v,"
_DELIMITERS = set('()[]{}";' + _WHITESPACE)

class _FormReader:
    """Reads just enough of a Clojure source file to get at its first form.

    Lists, vectors, maps and sets come back as Python lists; strings as str;
    everything else as Symbol. Reader macros are only understood as far as
    needed to skip over them.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _skip_whitespace(self):
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch in _WHITESPACE:
                self.pos += 1
            elif ch == ";":
                end = self.text.find("\n", self.pos)
                self.pos = len(self.text) if end == -1 else end + 1
            elif self.text.startswith("#!", self.pos):
                end = self.text.find("\n", self.pos)
                self.pos = len(self.text) if end == -1 else end + 1
            else:
                return

    def read(self) -> Any:
        self._skip_whitespace()
        ch = self._peek()
        if not ch:
            raise ReadError("EOF while reading")
        if ch in _CLOSERS:
            self.pos += 1
            return self._read_seq(_CLOSERS[ch])
        if ch in ")]}":
            raise ReadError(f"Unmatched delimiter {ch!r}")
        if ch == '"':
            return self._read_string()
        if ch == "^":
            # metadata applies to the next form
            self.pos += 1
            self.read()
            return self.read()
        if ch == "'" or ch == "@" or ch == "`":
            self.pos += 1
            return self.read()
        if ch == "#":
            return self._read_dispatch()
        return self._read_token()

    def _read_dispatch(self) -> Any:
        self.pos += 1
        ch = self._peek()
        if ch == "_":
            self.pos += 1
            self.read()
            return self.read()
        if ch == "{":
            self.pos += 1
            return self._read_seq("}")
        if ch == '"':
            return self._read_string()
        raise ReadError(f"Unsupported dispatch macro #{ch}")

    def _read_seq(self, closer: str) -> List[Any]:
        items = []
        while True:
            self._skip_whitespace()
            ch = self._peek()
            if not ch:
                raise ReadError("EOF while reading collection")
            if ch == closer:
                self.pos += 1
                return items
            if ch == "#" and self.text.startswith("#_", self.pos):
                self.pos += 2
                self.read()
                continue
            items.append(self.read())

    def _read_string(self) -> str:
        self.pos += 1
        out = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "\\":
                out.append(self.text[self.pos + 1:self.pos + 2])
                self.pos += 2
                continue
            self.pos += 1
            if ch == '"':
                return "".join(out)
            out.append(ch)
        raise ReadError("EOF while reading string")

    def _read_token(self) -> Symbol:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _DELIMITERS:
            self.pos += 1
        return Symbol(self.text[start:self.pos])

def read_first_form(text: str) -> Any:
    return _FormReader(text).read()

def get_ns_from_source_file_path(file_path: str) -> Optional[str]:
    """Takes a file path and returns the underscored namespace it declares.

    A file that starts with `(ns example.path-finder)` gives
    `example.path_finder`. Missing or unreadable files give None.
    """
    path = Path(file_path)
    if not path.is_file():
        return None
    try:
        form = read_first_form(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ReadError) as e:
        logger.debug(f"Could not read namespace from {file_path}: {e}")
        return None
    if not isinstance(form, list) or len(form) < 2:
        return None
    name = form[1]
    if not isinstance(name, str) or not name:
        return None
    # namespaced symbols keep only their name part
    if isinstance(name, Symbol) and "/" in name and name != "/":
        name = name.rsplit("/", 1)[1]
    return underscore(name)

# -- identifier munging ------------------------------------------------------

_CHAR_MAP = {
    "-": "_", ":": "_COLON_", "+": "_PLUS_", ">": "_GT_", "<": "_LT_",
    "=": "_EQ_", "~": "_TILDE_", "!": "_BANG_", "@": "_CIRCA_",
    "#": "_SHARP_", "'": "_SINGLEQUOTE_", '"': "_DOUBLEQUOTE_",
    "%": "_PERCENT_", "^": "_CARET_", "&": "_AMPERSAND_", "*": "_STAR_",
    "|": "_BAR_", "{": "_LBRACE_", "}": "_RBRACE_", "[": "_LBRACK_",
    "]": "_RBRACK_", "/": "_SLASH_", "\\": "_BSLASH_", "?": "_QMARK_",
}

_JS_RESERVED = frozenset("""
    abstract boolean break byte case catch char class const continue debugger
    default delete do double else enum export extends final finally float for
    function goto if implements import in instanceof int interface let long
    native new package private protected public return short static super
    switch synchronized this throw throws transient try typeof var void
    volatile while with yield methods null constructor
""".split())

def munge(name: str) -> str:
    """Turn a namespace name into the identifier used in compiled JS"""
    segments = []
    for segment in name.split("."):
        munged = "".join(_CHAR_MAP.get(ch, ch) for ch in segment)
        if munged in _JS_RESERVED:
            munged += "$"
        segments.append(munged)
    return ".".join(segments)

# -- server relative paths ---------------------------------------------------

def relative_to_root(config: ReloadConfig, path: str) -> str:
    path = norm_path(path)
    prefix = norm_path(config.root).rstrip("/") + "/"
    return path[len(prefix):] if path.startswith(prefix) else path

def resource_paths(config: ReloadConfig) -> List[str]:
    """Resource paths relative to the project root"""
    return [relative_to_root(config, p) for p in config.resource_paths]

def resource_paths_pattern_str(config: ReloadConfig) -> str:
    alternatives = "|".join(re.escape(p) for p in resource_paths(config))
    return f"({alternatives})/{re.escape(config.http_server_root)}"

def resource_paths_pattern(config: ReloadConfig) -> re.Pattern:
    return re.compile(resource_paths_pattern_str(config))

def strip_resource_root(config: ReloadConfig, path: str) -> str:
    """Remove the first `<resource-path>/<server-root>` occurrence from path"""
    return resource_paths_pattern(config).sub("", relative_to_root(config, path), count=1)

def server_relative_root_path(config: ReloadConfig) -> str:
    return strip_resource_root(config, config.output_dir)

def make_server_relative_path(config: ReloadConfig, ns: str) -> str:
    """Given a namespace, the URL path of its compiled JS file.

    Only meaningful for namespaces compiled into the output directory.
    """
    return f"{server_relative_root_path(config)}/{ns_to_path(ns)}.js"

def make_server_relative_css_path(config: ReloadConfig, path: str) -> str:
    return strip_resource_root(config, path)

def make_server_relative_file_path(config: ReloadConfig, path: str) -> str:
    """URL path of any file under a resource root, e.g. `goog/deps.js`"""
    return strip_resource_root(config, path)
