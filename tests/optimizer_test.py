from __future__ import annotations

import io

from deelang import ast
from deelang.diagnostics import Severity
from deelang.interp import interpret
from deelang.optimizer import Optimizer, collect_references, optimize
from deelang.parser import parse_program


def _optimize(source: str) -> tuple[ast.Program, list[str]]:
	optimizer = Optimizer()
	program = optimizer.optimize(parse_program(source))
	assert all(diag.severity is Severity.INFO for diag in optimizer.diagnostics)
	return program, [diag.message for diag in optimizer.diagnostics]


def _output(program: ast.Program) -> str:
	out = io.StringIO()
	assert interpret(program, stdout=out) == []
	return out.getvalue()


def test_folds_integer_addition() -> None:
	program, notes = _optimize("var x := 40 + 2\nprint x")
	initializer = program.statements[0].variables[0].initializer
	assert isinstance(initializer, ast.Literal)
	assert initializer.value == 42
	assert notes == ["Constant folding: 40 + 2 -> 42"]


def test_folds_nested_expressions_bottom_up() -> None:
	program, notes = _optimize("print 2 * 3 + 1")
	assert program.statements[0].values[0].value == 7
	assert notes == ["Constant folding: 2 * 3 -> 6", "Constant folding: 6 + 1 -> 7"]


def test_folds_with_interpreter_arithmetic() -> None:
	program, _ = _optimize("print -7 / 2, 5 / 2.0, 1 = 1.0")
	assert [value.value for value in program.statements[0].values] == [-4, 2.5, True]


def test_folds_strings_and_booleans() -> None:
	program, notes = _optimize('print "a" + "b", true xor false, not false')
	assert [value.value for value in program.statements[0].values] == ["ab", True, True]
	assert 'Constant folding: "a" + "b" -> "ab"' in notes


def test_division_by_zero_is_left_for_run_time() -> None:
	program, notes = _optimize("print 1 / 0")
	assert isinstance(program.statements[0].values[0], ast.Binary)
	assert notes == []


def test_type_errors_are_left_unfolded() -> None:
	program, _ = _optimize('print 1 + "a", 1 and true')
	assert all(isinstance(value, ast.Binary) for value in program.statements[0].values)


def test_true_condition_keeps_then_branch() -> None:
	program, notes = _optimize("if true then print 1 else print 2 end")
	block = program.statements[0]
	assert isinstance(block, ast.Block)
	assert block.statements[0].values[0].value == 1
	assert notes == ["Dead branch elimination: if condition is always true, removing else branch"]


def test_false_condition_keeps_else_branch() -> None:
	program, _ = _optimize("if 1 > 2 then print 1 else print 2 end")
	block = program.statements[0]
	assert isinstance(block, ast.Block)
	assert block.statements[0].values[0].value == 2


def test_false_condition_without_else_leaves_empty_block() -> None:
	program, notes = _optimize("if false then print 1 end")
	assert program.statements[0] == ast.Block(loc=ast.Located(1, 1), statements=())
	assert notes == ["Dead branch elimination: if condition is always false, removing entire if statement"]


def test_dynamic_condition_is_kept() -> None:
	program, _ = _optimize("var c := true\nif c then print 1 end")
	assert isinstance(program.statements[1], ast.If)


def test_unreachable_code_after_return_is_pruned() -> None:
	program, notes = _optimize("var f := func is\nreturn 1\nprint 2\nend\nprint f()")
	fn = program.statements[0].variables[0].initializer
	assert len(fn.statements) == 1
	assert notes == ["Unreachable code in block after return"]


def test_unreachable_code_at_top_level_has_its_own_note() -> None:
	program, notes = _optimize("return\nprint 1")
	assert len(program.statements) == 1
	assert notes == ["Unreachable code detected after return"]


def test_huge_integer_folds_and_renders() -> None:
	digits = "9" * 5000
	program, notes = _optimize(f"print {digits} + 1")
	assert program.statements[0].values[0].value == 10**5000
	assert notes == [f"Constant folding: {digits} + 1 -> 1" + "0" * 5000]


def test_unused_variable_is_removed() -> None:
	program, notes = _optimize("var unused := 1 + 1\nprint 1")
	assert [type(stmt) for stmt in program.statements] == [ast.Print]
	assert notes == ["Unused variable removal: 'unused'"]


def test_underscore_prefix_keeps_variable() -> None:
	program, notes = _optimize("var _keep := 1\nprint 1")
	assert len(program.statements) == 2
	assert notes == []


def test_only_unused_names_leave_a_declaration() -> None:
	program, _ = _optimize("var a := 1, b := 2\nprint a")
	assert program.statements[0].names == ("a",)


def test_assignment_target_counts_as_use() -> None:
	program, notes = _optimize("var x\nx := 1")
	assert len(program.statements) == 2
	assert notes == []


def test_references_inside_closures_are_counted() -> None:
	program = parse_program("var hidden := 1\nvar f := func => hidden\nprint f()")
	assert {"hidden", "f"} <= collect_references(program)


def test_input_tree_is_not_modified() -> None:
	program = parse_program("print 1 + 2")
	optimized = optimize(program)
	assert isinstance(program.statements[0].values[0], ast.Binary)
	assert isinstance(optimized.statements[0].values[0], ast.Literal)


def test_module_level_optimize_collects_diagnostics() -> None:
	diagnostics = []
	optimize(parse_program("print 1 + 2"), diagnostics)
	assert [str(diag) for diag in diagnostics] == ["Info at line 1, column 9: Constant folding: 1 + 2 -> 3"]


def test_optimization_preserves_output() -> None:
	sources = [
		"var x := 40 + 2\nprint x",
		"var t := 0\nfor i in 3..1 loop t := t + i end\nprint t",
		"print -7 / 2, 5 / 2, 5 / 2.0, 2 * 0.5",
		"if 2 > 1 then print \"yes\" else print \"no\" end",
		"var f := func(n) is\nreturn n * 2\nprint n\nend\nprint f(21)",
		"var a := [1, 2] + [3]\nprint a, (a is []), (a is {})",
		"var t := {a := 1, 2} + {c := 3}\nprint t.a, t.2, t.c",
	]
	for source in sources:
		program = parse_program(source)
		assert _output(optimize(program)) == _output(program), source
