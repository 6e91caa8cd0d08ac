"""Narrow JavaScript-like expression evaluation for rule templates and predicates.

Supports literals, variables from an explicit context, property and index
access, a fixed set of string/array methods, calls of functions supplied in
the context, and the usual unary, arithmetic, comparison, logical and ternary
operators. Anything else is rejected with ExpressionError.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any


class ExpressionError(Exception):
    """Raised when expression parsing or evaluation fails."""

    pass


class TokenType(Enum):
    """Token types for expression parsing."""

    NUMBER = "NUMBER"
    STRING = "STRING"
    BOOLEAN = "BOOLEAN"
    NULL = "NULL"
    IDENTIFIER = "IDENTIFIER"
    DOT = "DOT"
    LBRACKET = "LBRACKET"
    RBRACKET = "RBRACKET"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COMMA = "COMMA"
    OPERATOR = "OPERATOR"
    LOGICAL = "LOGICAL"
    COMPARISON = "COMPARISON"
    TERNARY = "TERNARY"
    EOF = "EOF"


class Token:
    """A token in an expression."""

    def __init__(self, type_: TokenType, value: str, position: int = 0):
        self.type = type_
        self.value = value
        self.position = position

    def __repr__(self):
        return f"Token({self.type}, {self.value!r})"


SINGLE_CHAR_TOKENS = {
    ".": TokenType.DOT,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    "?": TokenType.TERNARY,
    ":": TokenType.TERNARY,
}

# Longest first so "===" wins over "=="
MULTI_CHAR_TOKENS = [
    ("===", TokenType.COMPARISON),
    ("!==", TokenType.COMPARISON),
    ("==", TokenType.COMPARISON),
    ("!=", TokenType.COMPARISON),
    ("<=", TokenType.COMPARISON),
    (">=", TokenType.COMPARISON),
    ("&&", TokenType.LOGICAL),
    ("||", TokenType.LOGICAL),
]

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\"}


class ExpressionLexer:
    """Tokenizes JavaScript-like expressions."""

    def __init__(self, text: str):
        self.text = text
        self.position = 0

    @property
    def current_char(self) -> str | None:
        return self.text[self.position] if self.position < len(self.text) else None

    def read_number(self) -> str:
        start = self.position
        while self.current_char is not None and (self.current_char.isdigit() or self.current_char == "."):
            self.position += 1
        return self.text[start : self.position]

    def read_string(self, quote_char: str) -> str:
        result = ""
        self.position += 1  # Skip opening quote

        while self.current_char is not None and self.current_char != quote_char:
            if self.current_char == "\\":
                self.position += 1
                if self.current_char is not None:
                    result += ESCAPES.get(self.current_char, self.current_char)
                    self.position += 1
            else:
                result += self.current_char
                self.position += 1

        if self.current_char != quote_char:
            raise ExpressionError(f"Unterminated string starting with {quote_char}")
        self.position += 1
        return result

    def read_identifier(self) -> str:
        start = self.position
        while self.current_char is not None and (self.current_char.isalnum() or self.current_char in "_$"):
            self.position += 1
        return self.text[start : self.position]

    def tokenize(self) -> list[Token]:
        """Tokenize the entire expression."""
        tokens = []

        while self.current_char is not None:
            if self.current_char.isspace():
                self.position += 1
                continue

            start_pos = self.position
            char = self.current_char

            if char.isdigit():
                tokens.append(Token(TokenType.NUMBER, self.read_number(), start_pos))

            elif char in "\"'":
                tokens.append(Token(TokenType.STRING, self.read_string(char), start_pos))

            elif char.isalpha() or char in "_$":
                value = self.read_identifier()
                if value in ("true", "false"):
                    tokens.append(Token(TokenType.BOOLEAN, value, start_pos))
                elif value in ("null", "undefined"):
                    tokens.append(Token(TokenType.NULL, value, start_pos))
                else:
                    tokens.append(Token(TokenType.IDENTIFIER, value, start_pos))

            else:
                for symbol, token_type in MULTI_CHAR_TOKENS:
                    if self.text.startswith(symbol, self.position):
                        tokens.append(Token(token_type, symbol, start_pos))
                        self.position += len(symbol)
                        break
                else:
                    if char in SINGLE_CHAR_TOKENS:
                        tokens.append(Token(SINGLE_CHAR_TOKENS[char], char, start_pos))
                    elif char in "+-*/%":
                        tokens.append(Token(TokenType.OPERATOR, char, start_pos))
                    elif char in "<>":
                        tokens.append(Token(TokenType.COMPARISON, char, start_pos))
                    elif char == "!":
                        tokens.append(Token(TokenType.LOGICAL, "!", start_pos))
                    else:
                        raise ExpressionError(f"Unexpected character '{char}' at position {self.position}")
                    self.position += 1

        tokens.append(Token(TokenType.EOF, "", len(self.text)))
        return tokens


class ExpressionParser:
    """Parses tokenized expressions into an AST of plain dicts."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.position = 0
        self.current_token = tokens[0] if tokens else Token(TokenType.EOF, "")

    def advance(self):
        self.position += 1
        if self.position < len(self.tokens):
            self.current_token = self.tokens[self.position]
        else:
            self.current_token = Token(TokenType.EOF, "")

    def expect(self, token_type: TokenType, value: str, message: str):
        if self.current_token.type != token_type or self.current_token.value != value:
            raise ExpressionError(message)
        self.advance()

    def parse(self) -> dict[str, Any]:
        expr = self.ternary()
        if self.current_token.type != TokenType.EOF:
            raise ExpressionError(f"Unexpected token: {self.current_token}")
        return expr

    def ternary(self) -> dict[str, Any]:
        """Parse ternary conditional (condition ? true_val : false_val)."""
        expr = self.binary(0)

        if self.current_token.type == TokenType.TERNARY and self.current_token.value == "?":
            self.advance()
            true_val = self.ternary()
            self.expect(TokenType.TERNARY, ":", "Expected ':' in ternary expression")
            false_val = self.ternary()
            return {"type": "ternary", "condition": expr, "true_value": true_val, "false_value": false_val}

        return expr

    # Binary precedence levels, loosest first
    LEVELS = [
        (TokenType.LOGICAL, ("||",)),
        (TokenType.LOGICAL, ("&&",)),
        (TokenType.COMPARISON, ("==", "!=", "===", "!==")),
        (TokenType.COMPARISON, ("<", ">", "<=", ">=")),
        (TokenType.OPERATOR, ("+", "-")),
        (TokenType.OPERATOR, ("*", "/", "%")),
    ]

    def binary(self, level: int) -> dict[str, Any]:
        if level == len(self.LEVELS):
            return self.unary()

        token_type, operators = self.LEVELS[level]
        left = self.binary(level + 1)
        while self.current_token.type == token_type and self.current_token.value in operators:
            op = self.current_token.value
            self.advance()
            right = self.binary(level + 1)
            left = {"type": "binary", "operator": op, "left": left, "right": right}
        return left

    def unary(self) -> dict[str, Any]:
        """Parse unary operators (!, -, +)."""
        if (self.current_token.type == TokenType.LOGICAL and self.current_token.value == "!") or (
            self.current_token.type == TokenType.OPERATOR and self.current_token.value in ("+", "-")
        ):
            op = self.current_token.value
            self.advance()
            return {"type": "unary", "operator": op, "operand": self.unary()}

        return self.postfix()

    def arguments(self) -> list[dict[str, Any]]:
        self.advance()  # Skip "("
        args = []
        if self.current_token.type != TokenType.RPAREN:
            args.append(self.ternary())
            while self.current_token.type == TokenType.COMMA:
                self.advance()
                args.append(self.ternary())
        if self.current_token.type != TokenType.RPAREN:
            raise ExpressionError("Expected ')' after arguments")
        self.advance()
        return args

    def postfix(self) -> dict[str, Any]:
        """Parse property access, index access, method calls and function calls."""
        left = self.primary()

        while True:
            if self.current_token.type == TokenType.DOT:
                self.advance()
                if self.current_token.type not in (TokenType.IDENTIFIER, TokenType.BOOLEAN, TokenType.NULL):
                    raise ExpressionError("Expected property name after '.'")
                property_name = self.current_token.value
                self.advance()

                if self.current_token.type == TokenType.LPAREN:
                    left = {
                        "type": "method_call",
                        "object": left,
                        "method": property_name,
                        "arguments": self.arguments(),
                    }
                else:
                    left = {"type": "property_access", "object": left, "property": property_name}

            elif self.current_token.type == TokenType.LBRACKET:
                self.advance()
                index = self.ternary()
                if self.current_token.type != TokenType.RBRACKET:
                    raise ExpressionError("Expected ']' after index")
                self.advance()
                left = {"type": "array_access", "object": left, "index": index}

            elif self.current_token.type == TokenType.LPAREN:
                left = {"type": "call", "callee": left, "arguments": self.arguments()}

            else:
                break

        return left

    def primary(self) -> dict[str, Any]:
        """Parse literals, identifiers, parentheses and array literals."""
        token = self.current_token

        if token.type == TokenType.NUMBER:
            self.advance()
            try:
                value = float(token.value) if "." in token.value else int(token.value)
            except ValueError:
                raise ExpressionError(f"Invalid number '{token.value}'") from None
            return {"type": "literal", "value": value}

        if token.type == TokenType.STRING:
            self.advance()
            return {"type": "literal", "value": token.value}

        if token.type == TokenType.BOOLEAN:
            self.advance()
            return {"type": "literal", "value": token.value == "true"}

        if token.type == TokenType.NULL:
            self.advance()
            return {"type": "literal", "value": None}

        if token.type == TokenType.IDENTIFIER:
            self.advance()
            return {"type": "identifier", "name": token.value}

        if token.type == TokenType.LPAREN:
            self.advance()
            expr = self.ternary()
            if self.current_token.type != TokenType.RPAREN:
                raise ExpressionError("Expected ')' after expression")
            self.advance()
            return expr

        if token.type == TokenType.LBRACKET:
            self.advance()
            elements = []
            while self.current_token.type != TokenType.RBRACKET:
                elements.append(self.ternary())
                if self.current_token.type == TokenType.COMMA:
                    self.advance()
                elif self.current_token.type != TokenType.RBRACKET:
                    raise ExpressionError("Expected ',' or ']' in array literal")
            self.advance()
            return {"type": "array_literal", "elements": elements}

        raise ExpressionError(f"Unexpected token: {token}")


def to_boolean(value: Any) -> bool:
    """Convert a value to boolean using JavaScript rules."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0 and value == value  # NaN is falsy
    if isinstance(value, str):
        return len(value) > 0
    return True


def to_string(value: Any) -> str:
    """Convert a value to text the way JavaScript string interpolation does."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(to_string(item) for item in value)
    return str(value)


def to_number(value: Any) -> int | float:
    """Convert a value to number using JavaScript rules."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int | float):
        return value
    if isinstance(value, str):
        if value.strip() == "":
            return 0
        try:
            return float(value) if "." in value else int(value)
        except ValueError:
            return float("nan")
    return float("nan")


def _js_slice_bounds(length: int, args: list[Any]) -> tuple[int, int]:
    start = int(to_number(args[0])) if args and args[0] is not None else 0
    end = int(to_number(args[1])) if len(args) > 1 and args[1] is not None else length
    return start, end


STRING_METHODS: dict[str, Callable[[str, list[Any]], Any]] = {
    "includes": lambda s, a: to_string(a[0] if a else None) in s,
    "startsWith": lambda s, a: s.startswith(to_string(a[0] if a else None)),
    "endsWith": lambda s, a: s.endswith(to_string(a[0] if a else None)),
    "indexOf": lambda s, a: s.find(to_string(a[0] if a else None)),
    "split": lambda s, a: s.split(to_string(a[0])) if a and a[0] != "" else list(s),
    "replace": lambda s, a: s.replace(to_string(a[0]), to_string(a[1] if len(a) > 1 else None), 1),
    "trim": lambda s, a: s.strip(),
    "toLowerCase": lambda s, a: s.lower(),
    "toUpperCase": lambda s, a: s.upper(),
    "charAt": lambda s, a: s[int(to_number(a[0]))] if a and 0 <= int(to_number(a[0])) < len(s) else "",
    "slice": lambda s, a: s[slice(*_js_slice_bounds(len(s), a))],
    "substring": lambda s, a: s[slice(*sorted(max(0, bound) for bound in _js_slice_bounds(len(s), a)))],
}

ARRAY_METHODS: dict[str, Callable[[list, list[Any]], Any]] = {
    "includes": lambda items, a: (a[0] in items) if a else False,
    "indexOf": lambda items, a: items.index(a[0]) if a and a[0] in items else -1,
    "join": lambda items, a: (to_string(a[0]) if a else ",").join(to_string(item) for item in items),
    "slice": lambda items, a: items[slice(*_js_slice_bounds(len(items), a))],
    "concat": lambda items, a: items + [x for arg in a for x in (arg if isinstance(arg, list) else [arg])],
}


class ExpressionEvaluator:
    """Evaluates parsed expression ASTs against an explicit variable set."""

    def __init__(self, context: dict[str, Any]):
        self.context = context

    def evaluate(self, node: dict[str, Any]) -> Any:
        node_type = node["type"]

        if node_type == "literal":
            return node["value"]

        if node_type == "identifier":
            name = node["name"]
            if name not in self.context:
                raise ExpressionError(f"Unknown variable '{name}'")
            return self.context[name]

        if node_type == "array_literal":
            return [self.evaluate(element) for element in node["elements"]]

        if node_type == "binary":
            op = node["operator"]
            left = self.evaluate(node["left"])
            # Short-circuit like JavaScript
            if op == "&&":
                return self.evaluate(node["right"]) if to_boolean(left) else left
            if op == "||":
                return left if to_boolean(left) else self.evaluate(node["right"])
            return self._binary_op(op, left, self.evaluate(node["right"]))

        if node_type == "unary":
            operand = self.evaluate(node["operand"])
            if node["operator"] == "!":
                return not to_boolean(operand)
            if node["operator"] == "-":
                return -to_number(operand)
            return to_number(operand)

        if node_type == "property_access":
            return self._get_property(self.evaluate(node["object"]), node["property"])

        if node_type == "array_access":
            return self._get_element(self.evaluate(node["object"]), self.evaluate(node["index"]))

        if node_type == "method_call":
            obj = self.evaluate(node["object"])
            args = [self.evaluate(arg) for arg in node["arguments"]]
            return self._call_method(obj, node["method"], args)

        if node_type == "call":
            callee = self.evaluate(node["callee"])
            if not callable(callee):
                raise ExpressionError(f"{to_string(callee) or 'undefined'} is not a function")
            return callee(*[self.evaluate(arg) for arg in node["arguments"]])

        if node_type == "ternary":
            if to_boolean(self.evaluate(node["condition"])):
                return self.evaluate(node["true_value"])
            return self.evaluate(node["false_value"])

        raise ExpressionError(f"Unknown node type: {node_type}")

    def _binary_op(self, op: str, left: Any, right: Any) -> Any:
        if op in ("==", "==="):
            return self._equals(left, right, strict=op == "===")
        if op in ("!=", "!=="):
            return not self._equals(left, right, strict=op == "!==")
        if op == "+":
            if isinstance(left, str) or isinstance(right, str):
                return to_string(left) + to_string(right)
            return to_number(left) + to_number(right)

        if op in ("<", ">", "<=", ">=") and isinstance(left, str) and isinstance(right, str):
            left_value, right_value = left, right
        else:
            left_value, right_value = to_number(left), to_number(right)

        if op == "<":
            return left_value < right_value
        if op == ">":
            return left_value > right_value
        if op == "<=":
            return left_value <= right_value
        if op == ">=":
            return left_value >= right_value
        if op == "-":
            return left_value - right_value
        if op == "*":
            return left_value * right_value
        if op == "/":
            if right_value == 0:
                return float("nan") if left_value == 0 else float("inf") if left_value > 0 else float("-inf")
            return left_value / right_value
        if op == "%":
            if right_value == 0:
                return float("nan")
            return left_value % right_value

        raise ExpressionError(f"Unknown binary operator: {op}")

    def _equals(self, left: Any, right: Any, strict: bool) -> bool:
        if type(left) is type(right) or (isinstance(left, int | float) and isinstance(right, int | float)):
            if isinstance(left, bool) != isinstance(right, bool) and strict:
                return False
            return left == right
        if strict:
            return False
        if left is None or right is None:
            return left is None and right is None
        if isinstance(left, bool | int | float | str) and isinstance(right, bool | int | float | str):
            return to_number(left) == to_number(right)
        return False

    def _get_property(self, obj: Any, prop: str) -> Any:
        if obj is None:
            raise ExpressionError(f"Cannot read property '{prop}' of undefined")
        if isinstance(obj, dict):
            return obj.get(prop)
        if isinstance(obj, list | str) and prop == "length":
            return len(obj)
        return None

    def _get_element(self, obj: Any, index: Any) -> Any:
        if obj is None:
            raise ExpressionError("Cannot index undefined")
        if isinstance(obj, dict):
            return obj.get(to_string(index))
        if isinstance(obj, list | str):
            position = to_number(index)
            if isinstance(position, int) and 0 <= position < len(obj):
                return obj[position]
        return None

    def _call_method(self, obj: Any, method: str, args: list[Any]) -> Any:
        if isinstance(obj, str) and method in STRING_METHODS:
            return STRING_METHODS[method](obj, args)
        if isinstance(obj, list) and method in ARRAY_METHODS:
            return ARRAY_METHODS[method](obj, args)
        if isinstance(obj, dict) and callable(obj.get(method)):
            return obj[method](*args)
        raise ExpressionError(f"Unsupported method '{method}'")


def compile_expression(expression: str) -> dict[str, Any]:
    """Tokenize and parse an expression once so it can be evaluated many times."""
    if not expression.strip():
        raise ExpressionError("Empty expression")
    return ExpressionParser(ExpressionLexer(expression).tokenize()).parse()


def evaluate_expression(expression: str, context: dict[str, Any]) -> Any:
    return ExpressionEvaluator(context).evaluate(compile_expression(expression))
