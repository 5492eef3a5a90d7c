"""Source adapter for Ruby-style files.

This is a tokenizer, not a full parser. It knows enough of the grammar to
skip literals and comments, balance `end` keywords, and report module/class
definitions, constant assignments and constant references. Anything it does
not understand degrades to "no definition" or "no reference", which the rules
treat as no opinion.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field

from .nodes import ClassDef, ConstantAssign, ConstRef, Definition, ModuleDef, SourceUnit

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:[?!](?!=))?")
_NUMBER = re.compile(r"\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?")
_VARIABLE = re.compile(r"@@?[A-Za-z_]\w*|\$(?:[A-Za-z_]\w*|\d+|.)")
_HEREDOC = re.compile(r"<<([~-]?)([\"'`]?)([A-Za-z_]\w*)\2")
_PERCENT = re.compile(r"%[qQwWiIrsx]?[(\[{<|!/]")
_PUNCT = re.compile(
    r"::|&\.|\*\*=?|<=>|===?|=~|=>|!=|!~|\|\|=?|&&=?|<<=?|>>=?|\.\.\.?|[-+*/%&|^<>]=?|[=!~?:;,.()\[\]{}\\]"
)
_ENDLESS_DEF = re.compile(r"def\s+(?:self\.)?[\w?!]+=?(?:\([^)]*\))?\s*=(?![=~>])")

_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_VALUE_END = {")", "]", "}"}
_STATEMENT_START = {
    ";", "=", "(", "[", ",", "{", "||=", "&&=", "+=", "-=", "=>",
    "then", "else", "do", "begin", "and", "or", "not", "|", "&&", "||",
}
_LOOP_KEYWORDS = {"while", "until", "for"}
_CONDITIONAL_KEYWORDS = {"if", "unless", *_LOOP_KEYWORDS}


@dataclass(frozen=True)
class Token:
    kind: str  # ident | label | punct | nl
    text: str
    pos: int


class _Lexer:
    """Tokenize `text[start:stop]`; token positions index into the whole text.

    `interpolations` collects the `(start, stop)` spans of outermost `#{...}`
    bodies found in strings, regexps, symbols and heredocs.
    """

    def __init__(self, text: str, start: int = 0, stop: int | None = None) -> None:
        self.text = text
        self.start = start
        self.stop = len(text) if stop is None else stop
        self.tokens: list[Token] = []
        self.interpolations: list[tuple[int, int]] = []
        self._heredocs: list[tuple[str, bool]] = []

    def _prev(self) -> Token | None:
        return self.tokens[-1] if self.tokens else None

    def _expects_value(self) -> bool:
        prev = self._prev()
        if prev is None or prev.kind == "nl":
            return True
        if prev.kind == "punct":
            return prev.text not in _VALUE_END
        return False

    def _skip_quoted(self, i: int, close: str, interpolate: bool, record: bool = True) -> int:
        text = self.text
        n = self.stop
        while i < n:
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == close:
                return i + 1
            if interpolate and text.startswith("#{", i):
                i = self._skip_interpolation(i + 2, record)
                continue
            i += 1
        return n

    def _skip_interpolation(self, i: int, record: bool = True) -> int:
        # Nested strings inside the body are left to the lexer that tokenizes the body.
        text = self.text
        n = self.stop
        body = i
        depth = 1
        while i < n:
            ch = text[i]
            if ch in "\"'`":
                i = self._skip_quoted(i + 1, ch, ch != "'", record=False)
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    if record and i > body:
                        self.interpolations.append((body, i))
                    return i + 1
            i += 1
        return n

    def _skip_delimited(self, i: int, opener: str) -> int:
        text = self.text
        n = self.stop
        closer = _PAIRS.get(opener, opener)
        depth = 1
        while i < n:
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == closer and closer != opener:
                depth -= 1
                if depth == 0:
                    return i + 1
            elif ch == opener and closer != opener:
                depth += 1
            elif ch == closer:
                return i + 1
            i += 1
        return n

    def _skip_heredoc_bodies(self, i: int) -> int:
        text = self.text
        n = self.stop
        for terminator, interpolate in self._heredocs:
            while i < n:
                end = text.find("\n", i, n)
                line_end = n if end == -1 else end
                if text[i:line_end].strip() == terminator:
                    i = n if end == -1 else end + 1
                    break
                j = i
                while interpolate:
                    j = text.find("#{", j, line_end)
                    if j == -1:
                        break
                    j = self._skip_interpolation(j + 2)
                i = n if end == -1 else max(end + 1, j)
        self._heredocs = []
        return i

    def tokenize(self) -> list[Token]:
        text = self.text
        n = self.stop
        i = self.start
        at_line_start = i == 0 or text[i - 1] == "\n"
        while i < n:
            ch = text[i]
            if at_line_start:
                if text.startswith("=begin", i):
                    end = re.compile(r"^=end\b.*$", re.M).search(text, i)
                    i = n if end is None else end.end()
                    continue
                if text.startswith("__END__", i) and text[i + 7 : i + 8] in ("", "\n", "\r"):
                    break
            at_line_start = False
            if ch == "\n":
                self.tokens.append(Token("nl", "\n", i))
                i += 1
                if self._heredocs:
                    i = self._skip_heredoc_bodies(i)
                at_line_start = True
                continue
            if ch in " \t\r":
                i += 1
                continue
            if ch == "\\" and text.startswith("\\\n", i):
                i += 2
                continue
            if ch == "#":
                end = text.find("\n", i, n)
                i = n if end == -1 else end
                continue
            if ch in "\"`":
                i = self._skip_quoted(i + 1, ch, True)
                self.tokens.append(Token("punct", "<str>", i))
                continue
            if ch == "'":
                i = self._skip_quoted(i + 1, "'", False)
                self.tokens.append(Token("punct", "<str>", i))
                continue
            if ch == "<":
                heredoc = _HEREDOC.match(text, i)
                if heredoc and (heredoc.group(1) or self._expects_value()):
                    self._heredocs.append((heredoc.group(3), heredoc.group(2) != "'"))
                    self.tokens.append(Token("punct", "<str>", i))
                    i = heredoc.end()
                    continue
            if ch == "%" and self._expects_value():
                percent = _PERCENT.match(text, i)
                if percent:
                    i = self._skip_delimited(percent.end(), text[percent.end() - 1])
                    self.tokens.append(Token("punct", "<str>", i))
                    continue
            if ch == "/" and self._regexp_allowed(i):
                i = self._skip_quoted(i + 1, "/", True)
                while i < n and text[i].isalpha():
                    i += 1
                self.tokens.append(Token("punct", "<str>", i))
                continue
            if ch == ":" and not text.startswith("::", i):
                prev_char = text[i - 1] if i else ""
                if i + 1 < n and text[i + 1] in "\"'" and prev_char != ":":
                    i = self._skip_quoted(i + 2, text[i + 1], text[i + 1] == '"')
                    self.tokens.append(Token("punct", "<sym>", i))
                    continue
                symbol = _IDENT.match(text, i + 1)
                if symbol and prev_char != ":":
                    i = symbol.end()
                    if text.startswith("=", i) and not text.startswith(("==", "=>", "=~"), i):
                        i += 1
                    self.tokens.append(Token("punct", "<sym>", i))
                    continue
            if ch in "@$":
                variable = _VARIABLE.match(text, i)
                if variable:
                    i = variable.end()
                    self.tokens.append(Token("punct", "<var>", i))
                    continue
            number = _NUMBER.match(text, i) if ch.isdigit() else None
            if number is not None:
                i = number.end()
                self.tokens.append(Token("punct", "<num>", i))
                continue
            ident = _IDENT.match(text, i)
            if ident:
                end = ident.end()
                if text.startswith(":", end) and not text.startswith("::", end):
                    self.tokens.append(Token("label", ident.group(), i))
                    i = end + 1
                    continue
                self.tokens.append(Token("ident", ident.group(), i))
                i = end
                continue
            punct = _PUNCT.match(text, i)
            if punct:
                self.tokens.append(Token("punct", punct.group(), i))
                i = punct.end()
                continue
            i += 1
        return self.tokens

    def _regexp_allowed(self, i: int) -> bool:
        if self._expects_value():
            return True
        prev = self._prev()
        text = self.text
        # `split /,/` style: identifier, space, then a slash glued to its operand.
        return (
            prev is not None
            and prev.kind == "ident"
            and i > 0
            and text[i - 1] == " "
            and i + 1 < self.stop
            and text[i + 1] not in " ="
        )


@dataclass
class _Frame:
    kind: str  # module | class | block
    name: str = ""
    line: int = 0
    column: int = 0
    superclass: ConstRef | None = None
    children: list[Definition] = field(default_factory=list)


class _Parser:
    def __init__(
        self,
        text: str,
        start: int = 0,
        stop: int | None = None,
        line_starts: list[int] | None = None,
    ) -> None:
        self.text = text
        lexer = _Lexer(text, start, stop)
        self.tokens = lexer.tokenize()
        self.interpolations = lexer.interpolations
        self._line_starts = line_starts or [0] + [m.end() for m in re.finditer("\n", text)]
        self.stack: list[_Frame] = []
        self.definitions: list[Definition] = []
        self.references: list[ConstRef] = []

    def _position(self, pos: int) -> tuple[int, int]:
        line_index = bisect.bisect_right(self._line_starts, pos) - 1
        return line_index + 1, pos - self._line_starts[line_index]

    def _tok(self, i: int) -> Token | None:
        return self.tokens[i] if 0 <= i < len(self.tokens) else None

    def _statement_start(self, i: int) -> bool:
        prev = self._tok(i - 1)
        if prev is None or prev.kind == "nl":
            return True
        return prev.text in _STATEMENT_START

    def _attach(self, node: Definition) -> None:
        for frame in reversed(self.stack):
            if frame.kind in ("module", "class"):
                frame.children.append(node)
                return
        self.definitions.append(node)

    def _read_chain(self, i: int) -> tuple[list[str], int, bool]:
        """Read `[::]Const(::Const)*` starting at token i; return segments, next index, cbase flag."""
        cbase = False
        tok = self._tok(i)
        if tok is not None and tok.text == "::":
            cbase = True
            i += 1
        segments: list[str] = []
        while True:
            tok = self._tok(i)
            if tok is None or tok.kind != "ident" or not tok.text[0].isupper():
                break
            segments.append(tok.text)
            i += 1
            sep, nxt = self._tok(i), self._tok(i + 1)
            if sep is not None and sep.text == "::" and nxt is not None and nxt.kind == "ident" and nxt.text[0].isupper():
                i += 1
                continue
            break
        return segments, i, cbase

    def _next_token_after(self, i: int) -> str | None:
        tok = self._tok(i)
        if tok is None or tok.kind == "nl":
            return None
        if tok.text in (".", "&.", "::"):
            nxt = self._tok(i + 1)
            return nxt.text if nxt is not None and nxt.kind == "ident" else None
        return tok.text

    def _emit_refs(self, start: int, segments: list[str], end: int, cbase: bool) -> None:
        line, column = self._position(self.tokens[start].pos)
        prefix = "::" if cbase else ""
        for k in range(1, len(segments) + 1):
            next_token = segments[k] if k < len(segments) else self._next_token_after(end)
            self.references.append(
                ConstRef(name=prefix + "::".join(segments[:k]), line=line, column=column, next_token=next_token)
            )

    def _is_endless_def(self, tok: Token) -> bool:
        line_end = self.text.find("\n", tok.pos)
        line = self.text[tok.pos :] if line_end == -1 else self.text[tok.pos : line_end]
        return bool(_ENDLESS_DEF.match(line))

    def parse(self) -> SourceUnit:
        tokens = self.tokens
        i = 0
        loop_do_pending = False
        while i < len(tokens):
            tok = tokens[i]
            prev = self._tok(i - 1)
            if tok.kind == "nl" or tok.text == ";":
                loop_do_pending = False
                i += 1
                continue
            if tok.kind != "ident" and tok.text != "::":
                i += 1
                continue
            if prev is not None and prev.text in (".", "&."):
                i += 1
                continue
            word = tok.text
            if word in ("module", "class"):
                i = self._definition(i, word)
                continue
            if word == "def":
                if not self._is_endless_def(tok):
                    self.stack.append(_Frame("block"))
                owner, dot = self._tok(i + 1), self._tok(i + 2)
                if owner is not None and owner.text == "self" and dot is not None and dot.text == ".":
                    i += 4
                else:
                    i += 2
                continue
            if word == "do":
                if loop_do_pending:
                    loop_do_pending = False
                else:
                    self.stack.append(_Frame("block"))
                i += 1
                continue
            if word in ("begin", "case"):
                self.stack.append(_Frame("block"))
                i += 1
                continue
            if word in _CONDITIONAL_KEYWORDS:
                if self._statement_start(i):
                    self.stack.append(_Frame("block"))
                    loop_do_pending = word in _LOOP_KEYWORDS
                i += 1
                continue
            if word == "end":
                self._close()
                i += 1
                continue
            segments, end, cbase = self._read_chain(i)
            if not segments:
                i += 1
                continue
            assign = self._tok(end)
            if assign is not None and assign.text == "=" and self._statement_start(i):
                line, column = self._position(tokens[end - 1].pos)
                self._attach(ConstantAssign(name=segments[-1], line=line, column=column))
            else:
                self._emit_refs(i, segments, end, cbase)
            i = end
        while self.stack:
            self._close()
        for start, stop in self.interpolations:
            body = _Parser(self.text, start, stop, self._line_starts).parse()
            self.references.extend(body.references)
        references = sorted(self.references, key=lambda ref: (ref.line, ref.column))
        return SourceUnit(definitions=tuple(self.definitions), references=tuple(references))

    def _definition(self, i: int, keyword: str) -> int:
        tok = self.tokens[i]
        line, column = self._position(tok.pos)
        nxt = self._tok(i + 1)
        if keyword == "class" and nxt is not None and nxt.text == "<<":
            self.stack.append(_Frame("block"))
            return i + 2
        segments, end, cbase = self._read_chain(i + 1)
        if not segments:
            return i + 1
        name = ("::" if cbase else "") + "::".join(segments)
        superclass: ConstRef | None = None
        marker = self._tok(end)
        if keyword == "class" and marker is not None and marker.text == "<":
            parent, parent_end, parent_cbase = self._read_chain(end + 1)
            if parent:
                self._emit_refs(end + 1, parent, parent_end, parent_cbase)
                superclass = self.references[-1]
                end = parent_end
        self.stack.append(_Frame(keyword, name=name, line=line, column=column, superclass=superclass))
        return end

    def _close(self) -> None:
        if not self.stack:
            return
        frame = self.stack.pop()
        if frame.kind == "module":
            self._attach(ModuleDef(frame.name, frame.line, frame.column, tuple(frame.children)))
        elif frame.kind == "class":
            self._attach(ClassDef(frame.name, frame.line, frame.column, frame.superclass, tuple(frame.children)))


def parse_source(text: str) -> SourceUnit:
    return _Parser(text).parse()
