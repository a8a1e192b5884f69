"""
Calculator Engine for KeyCalc
Turns one key press at a time into the text shown on the display
"""
import logging
import math
from decimal import Decimal
from enum import Enum

import config

logger = logging.getLogger("keycalc.calculator")

DIGITS = "0123456789"
DECIMAL_POINT = "."


class CalculatorError(Exception):
    """Base class for engine faults"""


class InvalidTokenError(CalculatorError, ValueError):
    """A key outside the calculator's alphabet"""


class UnsupportedOperatorError(CalculatorError, ValueError):
    """An operator that has no arithmetic meaning reached a reduction"""


class InvalidStackError(CalculatorError):
    """The expression stack is not in a shape the engine can work with"""


class Operator(str, Enum):
    PLUS = "+"
    MINUS = "-"
    TIMES = "*"
    DIVIDE = "/"
    EQUALS = "="

    @property
    def is_high_precedence(self):
        return self in (Operator.TIMES, Operator.DIVIDE)


def is_operand(element):
    return not isinstance(element, Operator)


class ExpressionStack:
    """Bounded buffer holding the expression in progress.

    Elements alternate between operand text and Operator members, starting
    with an operand. The '=' marker may only sit on top.
    """

    def __init__(self, capacity=config.MAX_STACK_DEPTH):
        self.capacity = capacity
        self._items = []

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __repr__(self):
        return f"ExpressionStack({self.snapshot()!r})"

    def push(self, element):
        if len(self._items) >= self.capacity:
            raise InvalidStackError(
                f"stack is full ({self.capacity} elements), cannot push {element!r}")
        if self._items:
            top = self._items[-1]
            if top is Operator.EQUALS:
                raise InvalidStackError("nothing may be pushed on top of '='")
            if is_operand(top) == is_operand(element):
                raise InvalidStackError(
                    f"elements must alternate, got {element!r} after {top!r}")
        elif not is_operand(element):
            raise InvalidStackError("the bottom element must be an operand")
        self._items.append(element)

    def pop(self):
        if not self._items:
            raise InvalidStackError("pop from an empty stack")
        return self._items.pop()

    def peek(self, depth=0):
        """Return the element `depth` places below the top"""
        if depth >= len(self._items):
            raise InvalidStackError(
                f"stack holds {len(self._items)} elements, cannot look {depth} below top")
        return self._items[-1 - depth]

    def replace_top(self, element):
        top = self.peek()
        if is_operand(top) != is_operand(element):
            raise InvalidStackError(f"cannot replace {top!r} with {element!r}")
        self._items[-1] = element

    def clear(self):
        self._items.clear()

    def snapshot(self):
        """Plain list of strings, for display and JSON"""
        return [e.value if isinstance(e, Operator) else e for e in self._items]


# --- Numeric formatting -----------------------------------------------------

def format_number(value):
    """Default text form of a float: '5' not '5.0', positional for ordinary magnitudes"""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    magnitude = abs(value)
    text = repr(value)
    if value.is_integer() and magnitude < 1e21:
        # shortest digits, so 2**60 reads 1152921504606847000
        return str(int(Decimal(text)))
    if 1e-6 <= magnitude < 1e21:
        if "e" in text:
            text = format(Decimal(text), "f")
        return text
    mantissa, exponent = text.split("e")
    exponent = int(exponent)
    return f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def parse_operand(text):
    """Read operand text back as a float ('12.' and 'Infinity' included)"""
    try:
        return float(text)
    except ValueError:
        raise InvalidStackError(f"operand {text!r} is not a number") from None


def to_display(text):
    """Map a computed result onto what a 10-character display can show"""
    if not math.isfinite(parse_operand(text)):
        return config.UNDEFINED_TEXT
    if len(text) > config.DISPLAY_WIDTH:
        return config.ERROR_TEXT
    return text


def apply_operator(operator, left, right):
    if operator is Operator.PLUS:
        return left + right
    if operator is Operator.MINUS:
        return left - right
    if operator is Operator.TIMES:
        return left * right
    if operator is Operator.DIVIDE:
        if right == 0:
            # IEEE-754 semantics: x/0 is a signed infinity, 0/0 is NaN
            if left == 0 or math.isnan(left):
                return math.nan
            return math.copysign(math.inf, left) * math.copysign(1.0, right)
        return left / right
    raise UnsupportedOperatorError(f"Unsupported operator: {operator!r}")


# --- Entry editor -----------------------------------------------------------

def handle_digit_or_point(stack, token):
    top = stack.peek()

    if is_operand(top):
        if token == DECIMAL_POINT:
            if DECIMAL_POINT not in top:
                stack.replace_top(top + DECIMAL_POINT)
        else:
            stack.replace_top(token if top == "0" else top + token)
        return stack.peek()

    # Typing after '=' starts a fresh computation
    if top is Operator.EQUALS:
        stack.pop()
        stack.pop()
    operand = "0." if token == DECIMAL_POINT else token
    stack.push(operand)
    return operand


# --- Precedence reducer -----------------------------------------------------

def reduce_top(stack):
    """Collapse the top operand-operator-operand triple, returning the raw result text"""
    right = parse_operand(stack.pop())
    operator = stack.pop()
    left = parse_operand(stack.pop())
    result = format_number(apply_operator(operator, left, right))
    logger.debug("reduced %s %s %s -> %s", left, operator.value, right, result)
    stack.push(result)
    return result


def reduce_all(stack):
    while len(stack) > 1:
        reduce_top(stack)
    return stack.peek()


def handle_operator(stack, operator):
    top = stack.peek()

    if len(stack) == 1:
        stack.push(operator)
        return top

    if is_operand(top):
        if len(stack) < 3:
            raise InvalidStackError(f"operand on top of a {len(stack)}-element stack")
        if not operator.is_high_precedence:
            result = reduce_all(stack)
        elif stack.peek(1).is_high_precedence:
            result = reduce_top(stack)
        else:
            stack.push(operator)
            return top
        stack.push(operator)
        display = to_display(result)
        if display != result:
            logger.debug("result %s shown as %s", result, display)
        return display

    # Operator pressed right after another operator; only a pending '=' is replaced
    if top is Operator.EQUALS:
        stack.replace_top(operator)
    return to_display(stack.peek(1))


# --- Entry point ------------------------------------------------------------

def parse_token(token):
    if isinstance(token, Operator):
        return token
    if not isinstance(token, str) or len(token) != 1:
        raise InvalidTokenError(f"Invalid key: {token!r}")
    if token in DIGITS or token == DECIMAL_POINT:
        return token
    try:
        return Operator(token)
    except ValueError:
        raise InvalidTokenError(f"Invalid key: {token!r}") from None


def process(stack, token):
    """Apply one key press to `stack` and return the display text.

    The stack is owned by the caller and is expected to start out empty;
    it is initialized to ["0"] on first use.
    """
    token = parse_token(token)
    if not stack:
        stack.push(config.INITIAL_DISPLAY)
    try:
        if isinstance(token, Operator):
            return handle_operator(stack, token)
        return handle_digit_or_point(stack, token)
    except InvalidStackError:
        logger.error("malformed stack %r while handling %r", stack.snapshot(), token)
        raise


class Calculator:
    """One calculator session: a private expression stack plus the current display"""

    def __init__(self):
        self.stack = ExpressionStack()
        self.display = config.INITIAL_DISPLAY

    def press(self, token):
        """Press a single key"""
        self.display = process(self.stack, token)
        return self.display

    def press_sequence(self, tokens):
        """Press several keys in order, skipping whitespace"""
        for token in tokens:
            if isinstance(token, str) and token.isspace():
                continue
            self.press(token)
        return self.display

    def clear(self):
        """Discard the expression in progress (C)"""
        self.stack.clear()
        self.display = config.INITIAL_DISPLAY
        return self.display

    def get_display(self):
        return self.display

    def get_stack(self):
        return self.stack.snapshot()
