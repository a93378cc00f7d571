"""
Bore topology ("mensur") of a wind instrument.

A Mensur is an arena of Segment objects addressed by integer indices. Each
segment is a cylinder or a truncated cone given by its front diameter, back
diameter and length (all in m). Segments are chained by `prev`/`next` indices;
the chain starting at `Mensur.head` is the backbone that ends in a terminator
segment (length 0, back diameter 0) whose front diameter is the opening of the
bell (0 for a closed end).

A segment may carry a side branch at its back face. The kind of junction is a
BranchKind, the link a SideLink:

- OWNED: `side` is the head of a sub-chain that belongs to this junction
  (TONEHOLE, ADDON, SPLIT).
- JOIN: `side` points back at the tail of a sub-chain owned by an upstream
  SPLIT, closing a loop (valve slides).
"""

import copy
import math
import logging
from enum import Enum, IntEnum

import pandas as pd

from .errors import TopologyError

# segments shorter than this are treated as equal when slicing
THRESHOLD = 1.0e-10


class BranchKind(IntEnum):
    TONEHOLE = 1
    ADDON = 2
    SPLIT = 3
    JOIN = 4


class SideLink(Enum):
    OWNED = "owned"
    JOIN = "join"


class Segment:
    """Single cylindrical or conical piece of the bore."""

    def __init__(self, df, db, length, comment=""):
        self.df = df
        self.db = db
        self.length = length
        self.comment = comment

        # branch data
        self.side_name = ""
        self.kind = None
        self.ratio = 0.0
        self.link = None

        # arena indices
        self.prev = None
        self.next = None
        self.side = None

    @property
    def is_terminator(self):
        return self.length == 0 and self.db == 0

    @property
    def is_cylinder(self):
        return self.df == self.db

    @property
    def mean_diameter(self):
        return (self.df + self.db) / 2

    @property
    def owns_side(self):
        return self.side is not None and self.link is SideLink.OWNED

    def set_branch(self, name, kind, ratio):
        self.side_name = name
        self.kind = BranchKind(kind)
        self.ratio = ratio

    def __repr__(self):
        r = f"Segment(df={self.df}, db={self.db}, length={self.length}"
        if self.comment:
            r += f", comment={self.comment!r}"
        if self.kind is not None:
            r += f", {self.kind.name}={self.side_name!r}:{self.ratio}"
        return r + ")"


class Mensur:
    """Arena of segments plus the index of the backbone head."""

    def __init__(self, comment=""):
        self.segments = []
        self.head = None
        self.comment = comment

    def __len__(self):
        return len(self.segments)

    def __getitem__(self, i):
        return self.segments[i]

    # construction

    def add(self, df, db, length, comment=""):
        """Add an unlinked segment and return its index."""
        self.segments.append(Segment(df, db, length, comment))
        return len(self.segments) - 1

    def append(self, after, df, db, length, comment=""):
        """Insert a new segment behind `after` (None starts a new chain)."""
        new = self.add(df, db, length, comment)
        if after is not None:
            a = self.segments[after]
            n = self.segments[new]
            if a.next is not None:
                self.segments[a.next].prev = new
                n.next = a.next
            a.next = new
            n.prev = after
        return new

    def prepend(self, before, df, db, length, comment=""):
        """Insert a new segment in front of `before`."""
        new = self.add(df, db, length, comment)
        if before is not None:
            b = self.segments[before]
            n = self.segments[new]
            if b.prev is not None:
                self.segments[b.prev].next = new
                n.prev = b.prev
            b.prev = new
            n.next = before
            if self.head == before:
                self.head = new
        return new

    def new_chain(self, rows):
        """Append a chain of (df, db, length[, comment]) rows; returns its head index."""
        head = None
        last = None
        for row in rows:
            last = self.append(last, *row)
            if head is None:
                head = last
        return head

    def copy_chain(self, head):
        """Duplicate the chain starting at head, branch markers included but unresolved."""
        new_head = None
        last = None
        for i in list(self.chain(head)):
            s = self.segments[i]
            last = self.append(last, s.df, s.db, s.length, s.comment)
            n = self.segments[last]
            n.side_name = s.side_name
            n.kind = s.kind
            n.ratio = s.ratio
            if new_head is None:
                new_head = last
        return new_head

    def remove(self, i):
        """
        Unlink segment i from its chain. The arena slot stays but becomes unreachable.

        Returns the previous segment when i was a tail, otherwise the next one.
        """
        s = self.segments[i]
        if s.next is None:
            if s.prev is None:
                raise TopologyError("cannot remove the only segment of a chain")
            out = s.prev
            self.segments[out].next = None
        elif s.prev is None:
            out = s.next
            self.segments[out].prev = None
            if self.head == i:
                self.head = out
        else:
            out = s.next
            self.segments[s.prev].next = s.next
            self.segments[s.next].prev = s.prev
        s.prev = s.next = None
        return out

    # navigation

    def first(self, i):
        while self.segments[i].prev is not None:
            i = self.segments[i].prev
        return i

    def last(self, i):
        while self.segments[i].next is not None:
            i = self.segments[i].next
        return i

    def chain(self, i=None):
        """Iterate over the indices of the chain starting at i (default: the head)."""
        if i is None:
            i = self.head
        while i is not None:
            yield i
            i = self.segments[i].next

    def join_point(self, start, branch_head):
        """
        Find the JOIN segment downstream of `start` that closes the branch
        starting at `branch_head`.
        """
        for i in self.chain(start):
            s = self.segments[i]
            if s.side is not None and s.kind == BranchKind.JOIN:
                if self.first(s.side) == branch_head:
                    return i
        name = self.segments[branch_head].comment or str(branch_head)
        raise TopologyError(f"Cannot find joining point for branch {name}")

    def count(self):
        """Number of backbone segments including the terminator."""
        return sum(1 for _ in self.chain())

    def total_length(self):
        return sum(self.segments[i].length for i in self.chain())

    def reachable(self):
        """Indices of all segments on the backbone and on owned branches, in walk order."""
        seen = set()
        order = []
        heads = [self.head]
        while len(heads) > 0:
            h = heads.pop()
            for i in self.chain(h):
                if i in seen:
                    raise TopologyError(f"segment {i} is reached twice")
                seen.add(i)
                order.append(i)
                s = self.segments[i]
                if s.owns_side:
                    heads.append(s.side)
        return order

    # transformations returning new mensurs

    def copy(self):
        return copy.deepcopy(self)

    def scale(self, a):
        """Return a copy with every length and diameter multiplied by a."""
        men = self.copy()
        for s in men.segments:
            s.df *= a
            s.db *= a
            s.length *= a
        return men

    def divide(self, step):
        """
        Return a copy in which every segment longer than `step` is sliced into
        pieces of at most `step`. Owned branches are sliced too; the branch stays
        attached to the last piece.
        """
        men = self.copy()
        heads = [(None, men.head)]
        while len(heads) > 0:
            owner, h = heads.pop()
            p = men.last(h)
            while p is not None:
                s = men.segments[p]
                if s.owns_side:
                    heads.append((p, s.side))
                prev = s.prev
                p = men._slice(p, prev, step)
                p = men.segments[p].prev
            if owner is not None:
                men.segments[owner].side = men.first(h)
        return men

    def cut(self, length):
        """
        Return a copy with `length` metres of the backbone cut away.

        A positive length removes that much from the mouth, a negative one
        from the bell. A cone cut in its middle gets the interpolated
        diameter at the cut. Branches on removed segments are dropped.

        Raises:
            TopologyError: The cut is not shorter than the backbone.
        """
        total = self.total_length()
        if abs(length) >= total:
            raise TopologyError(f"cannot cut {abs(length) * 1000:.1f} mm from a bore of {total * 1000:.1f} mm")

        men = self.copy()
        if length > 0:
            p = men.head
            l = men.segments[p].length
            while l < length and men.segments[p].next is not None:
                p = men.segments[p].next
                l += men.segments[p].length
            s = men.segments[p]
            x = l - length
            s.df = s.db - (s.db - s.df) / s.length * x
            s.length = x
            while men.head != p:
                men.remove(men.head)

        elif length < 0:
            length = -length
            tail = men.segments[men.last(men.head)]
            p = tail.prev
            l = men.segments[p].length
            while l < length and men.segments[p].prev is not None:
                p = men.segments[p].prev
                l += men.segments[p].length
            s = men.segments[p]
            x = l - length
            s.db = s.df + (s.db - s.df) / s.length * x
            s.length = x
            while s.next is not None:
                men.remove(s.next)
            # a closed bore stays closed
            men.append(p, 0.0 if tail.df == 0 else s.db, 0.0, 0.0, tail.comment)
        return men

    def truncate(self):
        """
        Return a copy with the bell cut down to its effective length.

        A spherical wave front leaving a flaring cone bulges out of the bell
        plane. Walking from the bell towards the mouth, the first flaring
        segment whose spherical cap reaches the bell is extended to that cap
        and replaces everything behind it. Bores that do not flare at the end
        are returned unchanged.
        """
        men = self.copy()
        tail = men.last(men.head)
        m = men.segments[tail].prev
        xb = 0.0
        while m is not None:
            s = men.segments[m]
            d1, d2, L = s.df, s.db, s.length
            if L == 0:
                m = s.prev
                continue
            xb += L
            if d2 <= d1:
                break
            t = math.atan((d2 - d1) / (2 * L))
            cap = (1 - math.cos(t)) / math.sin(t)
            l1 = cap * d1 / 2
            l2 = L + cap * d2 / 2
            if l1 < xb < l2:
                x = d1 / 2 / math.tan(t)
                s.length = (x + xb) * math.cos(t) - x
                s.db = (x + xb) * math.sin(t) * 2
                while s.next is not None:
                    men.remove(s.next)
                men.append(m, s.db, 0.0, 0.0, "truncated")
                logging.debug(f"truncated bell to {men.total_length() * 1000:.1f} mm")
                break
            m = s.prev
        return men

    def _slice(self, p, prev, step):
        s = self.segments[p]
        l = s.length
        if l <= step:
            return p
        num = int(l / step)
        t = (s.db - s.df) / l
        s.df = s.db - t * step
        s.length = step
        comment = s.comment

        df = s.df
        for i in range(num - 1):
            db = df
            df = db - t * step
            p = self.prepend(p, df, db, step, comment)

        db = df
        r = l - step * num
        if r > THRESHOLD:
            df = db - t * r
            if prev is not None and abs(df - self.segments[prev].db) < THRESHOLD:
                df = self.segments[prev].db
            p = self.prepend(p, df, db, r, comment)
        return p

    # reporting

    def rows(self, i=None):
        """Backbone rows (df, db, length, comment) in mm."""
        return [
            (s.df * 1000, s.db * 1000, s.length * 1000, s.comment)
            for s in (self.segments[j] for j in self.chain(i))
        ]

    def table(self, i=None):
        return pd.DataFrame(self.rows(i), columns=["df", "db", "length", "comment"])

    def format_men(self, reverse=False):
        """
        Render the backbone in the ZMENSUR row format.

        With reverse, the bore is written bell first: rows in reverse order
        with df and db swapped, ending in a terminator at the mouth diameter.
        """
        lines = [self.comment]
        rows = self.rows()
        if reverse:
            for df, db, r, comment in reversed(rows):
                if db == 0 and r == 0:
                    continue
                lines.append(f"{db:f},{df:f},{r:f},{comment}")
            lines.append(f"{rows[0][0]:f},{0.0:f},{0.0:f},")
            return "\n".join(lines) + "\n"

        for df, db, r, comment in rows:
            lines.append(f"{df:f},{db:f},{r:f},{comment}")
        df, db, r, comment = rows[-1]
        if db != 0 or r != 0:
            lines.append(f"{db:f},{0.0:f},{0.0:f},")
        return "\n".join(lines) + "\n"

    def xy(self, show_stair=False):
        """
        Bore profile as a DataFrame with columns x (mm from the mouth), d (mm) and comment.

        With show_stair, a step in diameter between two segments adds two
        points (old diameter and zero) at the same position.
        """
        points = []
        x = 0.0
        for i in self.chain():
            s = self.segments[i]
            points.append((x * 1000, s.df * 1000, s.comment))
            x += s.length
            if show_stair and s.next is not None and s.db != self.segments[s.next].df:
                points.append((x * 1000, s.db * 1000, "stair"))
                points.append((x * 1000, 0.0, "stair"))
        return pd.DataFrame(points, columns=["x", "d", "comment"])

    # checks

    def validate(self):
        """Raise TopologyError if the mensur cannot be solved."""
        if self.head is None:
            raise TopologyError("mensur has no segments")
        if self.segments[self.head].prev is not None:
            raise TopologyError("head segment has a predecessor")

        for i in self.reachable():
            s = self.segments[i]
            if s.df < 0 or s.db < 0 or s.length < 0:
                raise TopologyError(f"negative geometry in segment {i}: {s}")
            if s.length > 0 and (s.df == 0 or s.db == 0):
                raise TopologyError(f"segment {i} has a zero diameter: {s}")
            if s.next is None and not s.is_terminator:
                raise TopologyError(f"chain ending at segment {i} has no terminator")
            if s.kind is not None and s.side is None:
                raise TopologyError(f"branch \"{s.side_name}\" of segment {i} is not resolved")
            if s.side is None:
                continue
            if s.link is SideLink.OWNED:
                if self.segments[s.side].prev is not None:
                    raise TopologyError(f"side of segment {i} does not start a chain")
                if s.side == self.first(i):
                    raise TopologyError(f"segment {i} owns its own chain")
            elif s.link is SideLink.JOIN:
                if self.segments[s.side].next is not None:
                    raise TopologyError(f"join of segment {i} does not point at a chain tail")
            if s.kind == BranchKind.SPLIT:
                if s.next is None:
                    raise TopologyError(f"split at segment {i} ends the chain")
                j = self.join_point(s.next, s.side)
                if self.segments[j].next is None:
                    raise TopologyError(f"join of branch \"{s.side_name}\" is the terminator")
        return self
