from __future__ import annotations

import pytest

from deelang import ast
from deelang.diagnostics import ParseError
from deelang.parser import parse_program


def _first_value(source: str) -> ast.Expr:
	stmt = parse_program(source).statements[0]
	assert isinstance(stmt, ast.Print)
	return stmt.values[0]


def test_logical_operators_share_one_level() -> None:
	expr = _first_value("print a or b and c")
	assert isinstance(expr, ast.Binary)
	assert expr.op == "and"
	assert isinstance(expr.left, ast.Binary)
	assert expr.left.op == "or"
	assert isinstance(expr.right, ast.Reference)


def test_multiplication_binds_tighter_than_addition() -> None:
	expr = _first_value("print 1 + 2 * 3")
	assert expr.op == "+"
	assert isinstance(expr.right, ast.Binary)
	assert expr.right.op == "*"


def test_comparison_sits_below_arithmetic() -> None:
	expr = _first_value("print 1 + 2 < 4")
	assert expr.op == "<"
	assert expr.left.op == "+"


def test_binary_operators_are_left_associative() -> None:
	expr = _first_value("print 10 - 3 - 2")
	assert expr.op == "-"
	assert isinstance(expr.left, ast.Binary)
	assert expr.right.value == 2


def test_unary_binds_tighter_than_multiplication() -> None:
	expr = _first_value("print -a * b")
	assert expr.op == "*"
	assert isinstance(expr.left, ast.Unary)
	assert expr.left.op == "-"


def test_postfix_chain() -> None:
	expr = _first_value("print a[1].b(2)")
	assert isinstance(expr, ast.Call)
	assert isinstance(expr.func, ast.Member)
	assert expr.func.member == "b"
	assert isinstance(expr.func.value, ast.Index)
	assert expr.args[0].value == 2


def test_real_after_dot_is_two_positional_accesses() -> None:
	expr = _first_value("print t.1.2")
	assert isinstance(expr, ast.Member)
	assert expr.member == 2
	assert isinstance(expr.value, ast.Member)
	assert expr.value.member == 1
	assert expr.value.is_index


def test_type_indicators() -> None:
	assert _first_value("print x is []").indicator == "[]"
	assert _first_value("print x is {}").indicator == "{}"
	assert _first_value("print x is int").indicator == "int"
	assert _first_value("print x is func").indicator == "func"


def test_separators_collapse() -> None:
	program = parse_program(";\nvar a := 1;; var b := 2\n\n;print a\n")
	assert [type(stmt) for stmt in program.statements] == [ast.Declaration, ast.Declaration, ast.Print]


def test_statements_need_a_separator() -> None:
	with pytest.raises(ParseError) as excinfo:
		parse_program("var a := 1 var b := 2")
	assert excinfo.value.message == "Expected ';' or newline but found 'var'"


def test_multi_variable_declaration() -> None:
	stmt = parse_program("var a := 1, b, c := a").statements[0]
	assert stmt.names == ("a", "b", "c")
	assert stmt.variables[1].initializer is None


def test_full_if_with_else() -> None:
	stmt = parse_program("if x then print 1 else print 2 end").statements[0]
	assert isinstance(stmt, ast.If)
	assert isinstance(stmt.then_block, ast.Block)
	assert isinstance(stmt.else_block, ast.Block)
	assert len(stmt.else_block.statements) == 1


def test_short_if_wraps_body_in_block() -> None:
	stmt = parse_program("if x => print x").statements[0]
	assert isinstance(stmt.then_block, ast.Block)
	assert isinstance(stmt.then_block.statements[0], ast.Print)
	assert stmt.else_block is None


def test_loop_shapes() -> None:
	program = parse_program(
		"for i in 1..3 loop end\n"
		"for xs loop end\n"
		"for 3..1 loop end\n"
		"loop exit end"
	)
	ranged, iterable, anonymous, infinite = program.statements
	assert ranged.is_range and ranged.variable == "i"
	assert iterable.is_iterable and iterable.variable is None
	assert anonymous.is_range and anonymous.variable is None
	assert infinite.is_infinite
	assert isinstance(infinite.body.statements[0], ast.Break)


def test_while_with_continue() -> None:
	stmt = parse_program("while x loop continue end").statements[0]
	assert isinstance(stmt, ast.While)
	assert isinstance(stmt.body.statements[0], ast.Continue)


def test_function_literal_forms() -> None:
	program = parse_program(
		"var f := func(x, y) => x + y\n"
		"var g := func is return 1 end\n"
		"var h := func() -> 1"
	)
	f, g, h = (stmt.variables[0].initializer for stmt in program.statements)
	assert f.params == ("x", "y") and f.is_expression_body
	assert g.params == () and not g.is_expression_body
	assert isinstance(g.statements[0], ast.Return)
	assert h.params == () and h.expression.value == 1


def test_bare_return() -> None:
	fn = parse_program("var f := func is return\nend").statements[0].variables[0].initializer
	assert fn.statements[0].value is None


def test_tuple_literal_entries() -> None:
	expr = _first_value("print {a := 1, 2}")
	assert isinstance(expr, ast.TupleLiteral)
	assert [entry.name for entry in expr.entries] == ["a", None]


def test_newlines_inside_brackets() -> None:
	expr = _first_value("print [1,\n  2,\n  3\n]")
	assert len(expr.elements) == 3


def test_assignment_targets() -> None:
	program = parse_program("x := 1\na[2] := 3\nt.name := 4")
	assert [type(stmt.target) for stmt in program.statements] == [ast.Reference, ast.Index, ast.Member]


def test_invalid_assignment_target() -> None:
	with pytest.raises(ParseError) as excinfo:
		parse_program("1 + 2 := 3")
	assert excinfo.value.message == "Invalid assignment target"


def test_reserved_word_as_identifier() -> None:
	with pytest.raises(ParseError) as excinfo:
		parse_program("var int := 1")
	assert excinfo.value.message == "Reserved word 'int' cannot be used as an identifier"
	assert (excinfo.value.line, excinfo.value.column) == (1, 5)


def test_missing_end() -> None:
	with pytest.raises(ParseError) as excinfo:
		parse_program("if x then print 1")
	assert excinfo.value.message == "Expected 'else' or 'end' but found end of input"


def test_unclosed_paren_reports_eof_position() -> None:
	with pytest.raises(ParseError) as excinfo:
		parse_program("var x := (1")
	assert excinfo.value.message == "Expected ')' but found end of input"
	assert (excinfo.value.line, excinfo.value.column) == (1, 12)


def test_nodes_carry_positions() -> None:
	stmt = parse_program("\n  print 1 + 2").statements[0]
	assert (stmt.loc.line, stmt.loc.column) == (2, 3)
	assert (stmt.values[0].loc.line, stmt.values[0].loc.column) == (2, 11)
