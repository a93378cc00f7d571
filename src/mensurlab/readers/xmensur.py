"""
Reader for XMENSUR (.xmen) bore files.

XMENSUR is a sectioned variant of ZMENSUR with arithmetic expressions::

    # comment
    bore = 11.6
    slide = 2 * 150 + pi * 20 / 2

    MAIN
    bore, bore, 100, leadpipe
    BRANCH, valve1, 0.7
    bore, 12, 200
    OPEN_END
    END_MAIN

    GROUP, valve1
    bore, bore, slide
    OPEN_END
    END_GROUP

Rows are `df, db, length[, comment]` in mm; every value may be an expression
over the variables defined so far (`^` is a power, `pi`, `sin`, `cos`,
`sqrt`, ... are available). Markers attach to the previous row:

=============  ==========
XMENSUR        BranchKind
=============  ==========
TONEHOLE       TONEHOLE
SPLIT          TONEHOLE
INSERT         ADDON
BRANCH         SPLIT
MERGE          JOIN
=============  ==========

`OPEN_END` ends a section with a terminator open at the last diameter,
`CLOSED_END` with a closed one.
"""

import re
import logging

from sympy.parsing.sympy_parser import parse_expr, standard_transformations, convert_xor
from sympy import Float

from ..errors import MensurFormatError
from ..mensur import Mensur, BranchKind
from .branches import resolve_branches

TRANSFORMATIONS = standard_transformations + (convert_xor,)

# parse_expr evaluates its input, so attribute access, dunder names and
# subscripts are refused before parsing
FORBIDDEN = re.compile(r"__|\.\s*[A-Za-z_]|\[")

MARKERS = {
    "TONEHOLE": BranchKind.TONEHOLE,
    "SPLIT": BranchKind.TONEHOLE,
    "INSERT": BranchKind.ADDON,
    "BRANCH": BranchKind.SPLIT,
    "MERGE": BranchKind.JOIN,
}


def evaluate(expr, variables, path=None, line_no=None):
    """Evaluate an arithmetic expression with the given variables to a float."""
    expr = expr.strip()
    if len(expr) == 0:
        raise MensurFormatError("missing value", path, line_no)
    if FORBIDDEN.search(expr):
        raise MensurFormatError(f"attribute access and subscripts are not allowed in \"{expr}\"", path, line_no)
    try:
        local_dict = {name: Float(value) for name, value in variables.items()}
        value = parse_expr(expr, local_dict=local_dict, transformations=TRANSFORMATIONS)
    except Exception as e:
        raise MensurFormatError(f"cannot evaluate \"{expr}\": {e}", path, line_no) from e

    if not hasattr(value, "free_symbols"):
        raise MensurFormatError(f"\"{expr}\" is not a number", path, line_no)
    if len(value.free_symbols) > 0:
        names = ", ".join(sorted(str(s) for s in value.free_symbols))
        raise MensurFormatError(f"unknown variable {names} in \"{expr}\"", path, line_no)
    try:
        value = complex(value.evalf())
    except TypeError:
        raise MensurFormatError(f"\"{expr}\" is not a finite number", path, line_no)
    if value.imag != 0:
        raise MensurFormatError(f"\"{expr}\" is not a real number", path, line_no)
    return value.real


def _strip_comment(line):
    return line.split("#", 1)[0].strip()


def _is_var_def(line):
    name = line.split("=", 1)[0]
    return "=" in line and "," not in name


def _split_sections(lines, path):
    """Group rows by section. Returns (main rows, {group name: rows})."""
    main = None
    groups = {}
    stack = []
    for line_no, line in lines:
        fields = [f.strip() for f in line.split(",")]
        keyword = fields[0].upper()

        if keyword == "MAIN":
            if main is not None:
                raise MensurFormatError("Multiple MAIN definitions", path, line_no)
            if len(stack) > 0:
                raise MensurFormatError("MAIN inside another section", path, line_no)
            main = []
            stack.append(("MAIN", main))
        elif keyword == "END_MAIN":
            if len(stack) == 0 or stack[-1][0] != "MAIN":
                raise MensurFormatError("END_MAIN without MAIN", path, line_no)
            stack.pop()
        elif keyword == "GROUP":
            if len(fields) < 2 or len(fields[1]) == 0:
                raise MensurFormatError("GROUP without a name", path, line_no)
            name = fields[1]
            if name in groups:
                raise MensurFormatError(f"Duplicate GROUP \"{name}\"", path, line_no)
            groups[name] = []
            stack.append((name, groups[name]))
        elif keyword == "END_GROUP":
            if len(stack) == 0 or stack[-1][0] == "MAIN":
                raise MensurFormatError("END_GROUP without GROUP", path, line_no)
            stack.pop()
        else:
            if len(stack) == 0:
                raise MensurFormatError(f"row outside of MAIN or GROUP: {line}", path, line_no)
            stack[-1][1].append((line_no, fields))

    if len(stack) > 0:
        raise MensurFormatError(f"section \"{stack[-1][0]}\" is not closed", path)
    if main is None:
        raise MensurFormatError("No MAIN definition", path)
    return main, groups


def _build_section(mensur, rows, variables, path, name):
    head = None
    last = None
    ended = False
    for line_no, fields in rows:
        keyword = fields[0].upper()
        if ended:
            raise MensurFormatError(f"row after the end of section \"{name}\"", path, line_no)

        if keyword in ("OPEN_END", "CLOSED_END"):
            if last is None:
                raise MensurFormatError(f"{keyword} in empty section \"{name}\"", path, line_no)
            df = mensur[last].db if keyword == "OPEN_END" else 0.0
            last = mensur.append(last, df, 0.0, 0.0)
            ended = True
            continue

        if keyword in MARKERS:
            if last is None:
                raise MensurFormatError(f"{keyword} before the first row", path, line_no)
            if len(fields) < 3:
                raise MensurFormatError(f"{keyword} needs a name and a ratio", path, line_no)
            side_name = fields[1]
            ratio = evaluate(fields[2], variables, path, line_no)
            if mensur[last].side_name:
                logging.warning(f"row already branches to \"{mensur[last].side_name}\", "
                                f"adding a zero length segment for branch \"{side_name}\"")
                db = mensur[last].db
                last = mensur.append(last, db, db, 0, f"automatically added for new branch {side_name}")
            mensur[last].set_branch(side_name, MARKERS[keyword], ratio)
            continue

        if len(fields) < 3:
            raise MensurFormatError(f"unknown row \"{', '.join(fields)}\"", path, line_no)
        df = evaluate(fields[0], variables, path, line_no) * 0.001
        db = evaluate(fields[1], variables, path, line_no) * 0.001
        r = evaluate(fields[2], variables, path, line_no) * 0.001
        comment = fields[3] if len(fields) > 3 else ""
        last = mensur.append(last, df, db, r, comment)
        if head is None:
            head = last

    if not ended:
        raise MensurFormatError(f"section \"{name}\" has no OPEN_END or CLOSED_END", path)
    return head


def parse_xmensur(text, path=None):
    """
    Build a Mensur from XMENSUR text. Branches are resolved but not normalized.

    Raises:
        MensurFormatError: syntax and section errors ("Duplicate GROUP",
            "Multiple MAIN", "No MAIN"), bad expressions.
        TopologyError: unresolved branch names.
    """
    lines = []
    comment = ""
    for i, raw in enumerate(text.splitlines()):
        if len(comment) == 0 and raw.strip().startswith("#"):
            comment = raw.strip()[1:].strip()
        line = _strip_comment(raw)
        if len(line) > 0:
            lines.append((i + 1, line))

    variables = {}
    rows = []
    for line_no, line in lines:
        if _is_var_def(line):
            name, expr = line.split("=", 1)
            name = name.strip()
            if not name.isidentifier():
                raise MensurFormatError(f"invalid variable name \"{name}\"", path, line_no)
            variables[name] = evaluate(expr, variables, path, line_no)
        else:
            rows.append((line_no, line))

    main, groups = _split_sections(rows, path)

    mensur = Mensur(comment=comment)
    chains = {}
    for name, group_rows in groups.items():
        chains[name] = _build_section(mensur, group_rows, variables, path, name)
    mensur.head = _build_section(mensur, main, variables, path, "MAIN")
    logging.debug(f"read {len(mensur)} segments, {len(variables)} variables, {len(groups)} groups from {path}")

    return resolve_branches(mensur, chains)


def read_xmensur(path):
    """Read a .xmen file; see parse_xmensur."""
    try:
        with open(path, "r") as f:
            text = f.read()
    except OSError as e:
        raise MensurFormatError(f"cannot read file: {e}", path)
    return parse_xmensur(text, path)
