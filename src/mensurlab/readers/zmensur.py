"""
Reader for ZMENSUR (.men) bore files.

Format (lengths in mm)::

    trumpet in Bb              <- first line: file comment
    % comment
    bore = 11.6                <- variable (a plain number)
    11.6,11.6,100,leadpipe     <- segment: df,db,length[,comment]
    >valve1,0.7                <- branch marker attached to the previous segment
    bore,12,200
    12,0,0                     <- terminator: db = 0 and length = 0
    $valve1                    <- named chain, read up to its own terminator
    11.6,11.6,150
    11.6,0,0

Marker characters: `-` TONEHOLE, `+` ADDON, `>` SPLIT, `<` JOIN. The second
field of a marker is the branch ratio (a number or variable, not scaled).
"""

import logging

from ..errors import MensurFormatError
from ..mensur import Mensur, BranchKind
from .branches import resolve_branches

COMMENT_CHAR = "%"
CHILD_CHAR = "$"
MARKERS = {
    "-": BranchKind.TONEHOLE,
    "+": BranchKind.ADDON,
    ">": BranchKind.SPLIT,
    "<": BranchKind.JOIN,
}


def _is_var_def(line):
    """True if the first column of the line contains '='."""
    for ch in line:
        if ch == ",":
            return False
        if ch == "=":
            return True
    return False


def _read_variables(lines, path):
    variables = {}
    for line_no, line in lines:
        if not _is_var_def(line):
            continue
        name, value = line.split("=", 1)
        try:
            variables[name.strip()] = float(value.strip())
        except ValueError:
            raise MensurFormatError(f"variable \"{name.strip()}\" is not a number: {value.strip()}", path, line_no)
    return variables


def _value(token, variables, path, line_no):
    token = token.strip()
    if len(token) == 0:
        raise MensurFormatError("missing value", path, line_no)
    try:
        return float(token)
    except ValueError:
        pass
    if token not in variables:
        raise MensurFormatError(f"cannot find variable \"{token}\"", path, line_no)
    return variables[token]


def _build_chain(mensur, lines, variables, path, name):
    """Append segments from lines to mensur until a terminator; returns the chain head."""
    head = None
    last = None
    for line_no, line in lines:
        if len(line) == 0 or line[0] == COMMENT_CHAR or _is_var_def(line):
            continue

        if line[0] in MARKERS:
            fields = line[1:].split(",")
            if last is None:
                raise MensurFormatError("branch marker before the first segment", path, line_no)
            if len(fields) < 2:
                raise MensurFormatError(f"branch marker needs a name and a ratio: {line}", path, line_no)
            side_name = fields[0].strip()
            ratio = _value(fields[1], variables, path, line_no)
            if mensur[last].side_name:
                logging.warning(f"segment already branches to \"{mensur[last].side_name}\", "
                                f"adding a zero length segment for branch \"{side_name}\"")
                db = mensur[last].db
                last = mensur.append(last, db, db, 0, f"automatically added for new branch {side_name}")
            mensur[last].set_branch(side_name, MARKERS[line[0]], ratio)
            continue

        if line[0] == CHILD_CHAR:
            raise MensurFormatError(f"chain \"{name}\" is not terminated before {line}", path, line_no)

        fields = line.split(",")
        if len(fields) < 3:
            raise MensurFormatError(f"segment needs df,db,length: {line}", path, line_no)
        df = _value(fields[0], variables, path, line_no) * 0.001
        db = _value(fields[1], variables, path, line_no) * 0.001
        r = _value(fields[2], variables, path, line_no) * 0.001
        comment = fields[3].strip() if len(fields) > 3 else ""

        last = mensur.append(last, df, db, r, comment)
        if head is None:
            head = last
        if db == 0 and r == 0:
            return head

    raise MensurFormatError(f"chain \"{name}\" has no terminator (a row with db=0 and length=0)", path)


def parse_zmensur(text, path=None):
    """
    Build a Mensur from ZMENSUR text. Branches are resolved but not normalized.

    Raises:
        MensurFormatError: syntax errors, unknown variables, unterminated chains.
        TopologyError: unresolved branch names.
    """
    lines = [(i + 1, line.strip()) for i, line in enumerate(text.replace("\r\n", "\n").replace("\r", "\n").split("\n"))]
    if len(lines) == 0 or (len(lines) == 1 and lines[0][1] == ""):
        raise MensurFormatError("empty file", path)

    mensur = Mensur(comment=lines[0][1])
    body = lines[1:]
    variables = _read_variables(body, path)

    chains = {}
    for pos, (line_no, line) in enumerate(body):
        if len(line) == 0 or line[0] != CHILD_CHAR:
            continue
        name = line[1:].split(",")[0].strip()
        if len(name) == 0:
            raise MensurFormatError("branch definition without a name", path, line_no)
        if name in chains:
            raise MensurFormatError(f"Duplicate branch definition \"{name}\"", path, line_no)
        chains[name] = _build_chain(mensur, body[pos + 1:], variables, path, name)

    mensur.head = _build_chain(mensur, body, variables, path, "main")
    logging.debug(f"read {len(mensur)} segments, {len(chains)} named chains from {path}")

    return resolve_branches(mensur, chains)


def read_zmensur(path):
    """Read a .men file; see parse_zmensur."""
    try:
        with open(path, "r") as f:
            text = f.read()
    except OSError as e:
        raise MensurFormatError(f"cannot read file: {e}", path)
    return parse_zmensur(text, path)
