"""
Shared constants for the FLYUX toolchain.

Exports:
    token_hashmap: Fixed punctuation and sigil spellings mapped to token kinds.
    keyword_sigils: Single letters that become keywords when followed by `>`.
    word_keywords: Bare words that lex as keywords.
    reserved_symbols: Characters that can never start or continue an identifier.
    operator_chars: Characters always emitted as single UNKNOWN tokens.
    relational_ops / logical_ops / folding_ops: Parser operator classes.
    declared_types: Type names accepted in explicit declarations.
"""

VERSION = "0.1.0"

# Longest match wins. `<` and `<=` are absent: they lex as UNKNOWN and are
# reassembled by the parser.
token_hashmap: dict[str, str] = {
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACK",
    "]": "RBRACK",
    ",": "COMMA",
    "=": "EQ",
    "=>": "BIND_ONE",
    "=:": "EQ",
    "=::": "FORCE_ASSIGN",
    ":": "COLON",
    ":=": "ASSIGN",
    "<=>": "BIND_TWO",
    ".": "DOT",
    ".>": "PIPE",
}

keyword_sigils: dict[str, str] = {
    "F": "FN",
    "R": "RETURN",
    "L": "LOOP",
}

word_keywords: dict[str, str] = {
    "if": "IF",
    "elif": "ELIF",
    "else": "ELSE",
}

reserved_symbols = frozenset('(){}[],=:<>./";')
operator_chars = frozenset("+-*>&|")
ident_continue_excluded = frozenset("+-*/=><:,&|")

relational_ops = frozenset({"<", ">", "<=", ">=", "=="})
logical_ops = frozenset({"&&", "||"})
folding_ops = frozenset({"+", "-", "*", "/", "=", "&", "|"})

declared_types = ("int", "float", "bool", "string", "obj")

PRINT_BUILTIN = "print"
INPUT_SIGIL = "I"

VOID = "<void>"
UNKNOWN_FN = "<unknown-fn>"
BAD_OP = "<bad-op>"
PASSTHROUGH_IDENTS = frozenset({"<null>", "<undef>"})
