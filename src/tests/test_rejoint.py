"""
Pytest unit tests for mensurlab.rejoint.
"""

import pytest

from mensurlab.mensur import Mensur, BranchKind
from mensurlab.rejoint import rejoint, needs_rejoint
from mensurlab.readers.branches import resolve_branches
from mensurlab.errors import TopologyError


def loop_mensur(ratio):
    """Backbone A-B-C-D with a loop X1-X2 from A to C."""
    men = Mensur(comment="loop")
    men.head = men.new_chain([
        (0.010, 0.010, 0.100, "A"),
        (0.010, 0.010, 0.050, "B"),
        (0.010, 0.010, 0.050, "C"),
        (0.010, 0.012, 0.200, "D"),
        (0.012, 0.0, 0.0, "end"),
    ])
    x = men.new_chain([
        (0.010, 0.010, 0.080, "X1"),
        (0.010, 0.010, 0.080, "X2"),
        (0.010, 0.0, 0.0, ""),
    ])
    a = men.head
    c = men[men[a].next].next
    men[a].set_branch("x", BranchKind.SPLIT, ratio)
    men[c].set_branch("x", BranchKind.JOIN, ratio)
    return resolve_branches(men, {"x": x}).validate()


def addon_mensur(ratio):
    men = Mensur(comment="addon")
    men.head = men.new_chain([
        (0.010, 0.010, 0.100, "A"),
        (0.010, 0.010, 0.100, "B"),
        (0.010, 0.0, 0.0, "end"),
    ])
    y = men.new_chain([
        (0.010, 0.010, 0.050, "Y1"),
        (0.010, 0.010, 0.050, "Y2"),
        (0.010, 0.0, 0.0, ""),
    ])
    men[men.head].set_branch("y", BranchKind.ADDON, ratio)
    return resolve_branches(men, {"y": y}).validate()


def comments(men, i=None):
    return [men[j].comment for j in men.chain(i)]


class TestRejointSplit:
    """Tests for swapping SPLIT/JOIN loops."""

    def test_roles_swapped(self):
        out = rejoint(loop_mensur(0.7))
        assert comments(out) == ["A", "X1", "X2", "D", "end"]
        a = out[out.head]
        assert a.kind == BranchKind.SPLIT
        assert a.ratio == pytest.approx(0.3)
        assert comments(out, a.side)[:2] == ["B", "C"]

    def test_new_join_point(self):
        out = rejoint(loop_mensur(0.7))
        a = out[out.head]
        x2 = out[out.join_point(out.head, a.side)]
        assert x2.comment == "X2"
        assert x2.kind == BranchKind.JOIN
        assert x2.ratio == pytest.approx(0.3)
        assert out.first(x2.side) == a.side

    def test_demoted_path_is_terminated(self):
        out = rejoint(loop_mensur(0.7))
        side = out[out.head].side
        tail = out[out.last(side)]
        assert tail.is_terminator
        assert tail.df == pytest.approx(0.010)
        out.validate()

    def test_input_untouched(self):
        men = loop_mensur(0.7)
        rejoint(men)
        assert comments(men) == ["A", "B", "C", "D", "end"]
        assert men[men.head].ratio == pytest.approx(0.7)

    def test_idempotent(self):
        once = rejoint(loop_mensur(0.7))
        twice = rejoint(once)
        assert once.rows() == twice.rows()
        assert [once[i].ratio for i in once.chain()] == [twice[i].ratio for i in twice.chain()]

    def test_small_ratio_kept(self):
        men = loop_mensur(0.4)
        out = rejoint(men)
        assert out.rows() == men.rows()
        assert out[out.head].ratio == pytest.approx(0.4)

    def test_needs_rejoint(self):
        men = loop_mensur(0.7)
        assert needs_rejoint(men) == 1
        assert needs_rejoint(rejoint(men)) == 0

    def test_missing_join_raises(self):
        men = Mensur()
        men.head = men.new_chain([(0.01, 0.01, 0.1), (0.01, 0.01, 0.1), (0.01, 0.0, 0.0)])
        x = men.new_chain([(0.01, 0.01, 0.1), (0.01, 0.0, 0.0)])
        men[men.head].set_branch("x", BranchKind.SPLIT, 0.7)
        resolve_branches(men, {"x": x})
        with pytest.raises(TopologyError, match="joining point"):
            rejoint(men)


class TestRejointAddon:
    """Tests for swapping ADDON branches."""

    def test_branch_becomes_backbone(self):
        out = rejoint(addon_mensur(0.8))
        assert comments(out) == ["A", "Y1", "Y2", "B", "end"]
        a = out[out.head]
        assert a.kind == BranchKind.ADDON
        assert a.ratio == pytest.approx(0.2)

    def test_side_copies_old_continuation(self):
        out = rejoint(addon_mensur(0.8))
        side = out[out.head].side
        rows = out.rows(side)
        assert rows[0][:3] == pytest.approx((10.0, 10.0, 100.0))
        assert rows[1][:3] == pytest.approx((10.0, 0.0, 0.0))
        out.validate()

    def test_ratio_half_kept(self):
        men = addon_mensur(0.5)
        assert rejoint(men).rows() == men.rows()
