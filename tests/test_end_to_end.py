import platform
import shutil
import subprocess

import pytest

from minicc.compiler import Compiler


pytestmark = pytest.mark.skipif(
    shutil.which("gcc") is None or platform.machine() not in ("x86_64", "AMD64"),
    reason="needs gcc on x86-64",
)


def _compile_and_run(tmp_path, code: str) -> int:
    c_path = tmp_path / "t.c"
    out_path = tmp_path / "t"
    c_path.write_text(code)

    comp = Compiler()
    res = comp.compile_file(str(c_path), str(out_path))
    assert res.success, "compile failed: " + "\n".join(res.errors)

    p = subprocess.run([str(out_path)], check=False)
    return p.returncode


def _ret(tmp_path, expr: str) -> int:
    return _compile_and_run(tmp_path, f"int main(void) {{ return {expr}; }}\n")


@pytest.mark.parametrize(
    "expr,status",
    [
        ("2", 2),
        ("2 + 3 * 4", 14),
        ("(2 + 3) * 4", 20),
        ("1 - 2 - 3 + 10", 6),
        ("7 / 2", 3),
        ("10 / 3", 3),
        ("1 && 0", 0),
        ("2 && 3", 1),
        ("7 % 3", 1),
        ("-7 / 2 + 10", 7),
        ("-7 % 3 + 10", 9),
        ("~(-(3))", 2),
        ("-~3 ", 4),
        ("~~~5 + 10", 4),
        ("---3 + 10", 7),
        ("!0 + !5", 1),
        ("3 * 4 / 2 % 5", 1),
        ("10 - 3 * 2 * 1", 4),
    ],
)
def test_arithmetic_expressions(tmp_path, expr, status):
    assert _ret(tmp_path, expr) == status


@pytest.mark.parametrize(
    "expr,status",
    [
        ("1 < 2", 1),
        ("2 < 1", 0),
        ("2 <= 2", 1),
        ("3 > 2", 1),
        ("2 >= 3", 0),
        ("1 == 1", 1),
        ("1 != 1", 0),
        ("1 < 2 == 1", 1),
        ("-1 < 0", 1),
        ("1 ? 2 : 3", 2),
        ("0 ? 2 : 0 ? 4 : 5", 5),
    ],
)
def test_relational_and_conditional(tmp_path, expr, status):
    assert _ret(tmp_path, expr) == status


def test_variables_and_assignment(tmp_path):
    code = """
int main(void) {
  int a = 5;
  int b;
  b = a * 2;
  a = b = b + 1;
  return a + b;
}
""".lstrip()
    assert _compile_and_run(tmp_path, code) == 22


def test_shadowing(tmp_path):
    code = """
int main(void) {
  int x = 1;
  {
    int x = 10;
    x = x + 1;
  }
  return x;
}
""".lstrip()
    assert _compile_and_run(tmp_path, code) == 1


def test_if_else_chain(tmp_path):
    code = """
int main(void) {
  int a = 7;
  if (a < 5)
    return 1;
  else if (a < 10)
    return 2;
  else
    return 3;
}
""".lstrip()
    assert _compile_and_run(tmp_path, code) == 2


def test_while_loop(tmp_path):
    code = """
int main(void) {
  int i = 0;
  int sum = 0;
  while (i < 10) {
    i = i + 1;
    sum = sum + i;
  }
  return sum;
}
""".lstrip()
    assert _compile_and_run(tmp_path, code) == 55


def test_do_while_runs_once(tmp_path):
    code = """
int main(void) {
  int n = 0;
  do n = n + 1; while (0);
  return n;
}
""".lstrip()
    assert _compile_and_run(tmp_path, code) == 1


def test_for_with_break_and_continue(tmp_path):
    code = """
int main(void) {
  int total = 0;
  for (int i = 0; i < 100; i = i + 1) {
    if (i % 2 == 0)
      continue;
    if (i > 10)
      break;
    total = total + i;
  }
  return total;
}
""".lstrip()
    # 1 + 3 + 5 + 7 + 9
    assert _compile_and_run(tmp_path, code) == 25


def test_nested_loops_break_inner_only(tmp_path):
    code = """
int main(void) {
  int count = 0;
  for (int i = 0; i < 4; i = i + 1) {
    int j = 0;
    while (1) {
      if (j == 3) break;
      j = j + 1;
      count = count + 1;
    }
  }
  return count;
}
""".lstrip()
    assert _compile_and_run(tmp_path, code) == 12


def test_falling_off_main_returns_zero(tmp_path):
    assert _compile_and_run(tmp_path, "int main(void) { int a = 3; }\n") == 0


def test_many_locals(tmp_path):
    decls = "\n".join(f"  int v{i} = {i};" for i in range(20))
    total = " + ".join(f"v{i}" for i in range(20))
    code = f"int main(void) {{\n{decls}\n  return {total};\n}}\n"
    assert _compile_and_run(tmp_path, code) == sum(range(20))


def test_object_file_output(tmp_path):
    c_path = tmp_path / "t.c"
    c_path.write_text("int main(void) { return 0; }\n")
    res = Compiler().compile_file(str(c_path), str(tmp_path / "t.o"))
    assert res.success, res.errors
    assert (tmp_path / "t.o").exists()
