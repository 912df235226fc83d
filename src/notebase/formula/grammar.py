"""Lark grammar definition for NoteBase formulas.

This grammar supports Notion-style formula syntax:
- Arithmetic: +, -, *, / and unary minus
- Comparison: ==, !=, <, >, <=, >=
- Property references: prop("Column Name")
- Function calls: name(arg1, arg2, ...)
- Literals: numbers, strings (single or double quoted), true/false
"""

# Lark grammar for formula parsing
FORMULA_GRAMMAR = r"""
    ?start: comparison

    ?comparison: sum
        | comparison "==" sum -> eq
        | comparison "!=" sum -> ne
        | comparison "<" sum -> lt
        | comparison ">" sum -> gt
        | comparison "<=" sum -> le
        | comparison ">=" sum -> ge

    ?sum: product
        | sum "+" product -> add
        | sum "-" product -> sub

    ?product: unary
        | product "*" unary -> mul
        | product "/" unary -> div

    ?unary: atom
        | "-" unary -> neg
        | "+" unary -> pos

    ?atom: NUMBER -> number
        | STRING -> string
        | BOOLEAN -> boolean
        | prop_ref
        | function_call
        | "(" comparison ")"

    prop_ref: PROP "(" STRING ")"

    function_call: FUNCTION_NAME "(" [arguments] ")"

    arguments: comparison ("," comparison)*

    // Keywords outrank FUNCTION_NAME; \b keeps "property" or "trueish" whole
    PROP.3: /prop\b/i
    BOOLEAN.2: /(true|false)\b/i

    FUNCTION_NAME: /[A-Za-z_][A-Za-z0-9_]*/

    // String literals (single or double quotes, backslash escapes)
    STRING: /"(?:[^"\\]|\\.)*"/ | /'(?:[^'\\]|\\.)*'/

    // Number literals (integer or decimal, with optional exponent)
    // Note: negative sign is handled by unary operator, not here
    NUMBER: /(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/

    %import common.WS
    %ignore WS
"""
