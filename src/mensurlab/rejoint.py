"""
Branch normalization ("rejoint").

The impedance driver assumes that at every ADDON or SPLIT junction the backbone
carries at least half of the flow. When a junction's ratio is above 0.5 the
roles of backbone and branch are swapped so the larger path becomes the
backbone and the ratio becomes 1 - ratio.
"""

import logging

from .errors import TopologyError
from .mensur import BranchKind, SideLink


def rejoint(mensur):
    """
    Return a normalized copy of `mensur`; the input is left untouched.

    The backbone is walked once from the head. Junctions on the demoted side
    chains are not revisited. Applying rejoint to its own result changes nothing.

    Raises:
        TopologyError: A SPLIT to be swapped has no matching JOIN downstream.
    """
    men = mensur.copy()
    p = men.head
    while men[p].next is not None:
        s = men[p]
        if s.ratio > 0.5 and s.side is not None:
            if s.kind == BranchKind.ADDON:
                _swap_addon(men, p)
            elif s.kind == BranchKind.SPLIT:
                _swap_split(men, p)
        p = men[p].next
    return men


def needs_rejoint(mensur):
    """Number of backbone junctions whose branch carries more than half of the flow."""
    n = 0
    for i in mensur.chain():
        s = mensur[i]
        if s.side is not None and s.ratio > 0.5 and s.kind in (BranchKind.ADDON, BranchKind.SPLIT):
            n += 1
    return n


def _swap_addon(men, p):
    s = men[p]
    logging.info(f"rejoint ADDON \"{s.side_name}\": ratio {s.ratio:.3f} -> {1 - s.ratio:.3f}")

    # drop the terminator of the branch and hang the old continuation behind it
    q = men.remove(men.last(s.side))
    nxt = s.next
    men[q].next = nxt
    men[nxt].prev = q

    s.next = s.side
    men[s.side].prev = p

    # the demoted path keeps a copy of the first segment it used to start with
    n = men[nxt]
    ss = men.add(n.df, n.db, n.length, n.comment)
    men.append(ss, men[ss].db, 0, 0)
    s.side = ss
    s.link = SideLink.OWNED
    s.ratio = 1 - s.ratio


def _swap_split(men, p):
    s = men[p]
    logging.info(f"rejoint SPLIT \"{s.side_name}\": ratio {s.ratio:.3f} -> {1 - s.ratio:.3f}")

    j = men.join_point(p, s.side)
    js = men[j]
    if js.next is None:
        raise TopologyError(f"join of branch \"{s.side_name}\" is the terminator")

    # last real segment of the branch, its terminator is dropped
    q = men.remove(js.side)

    ss = s.next
    men[s.side].prev = p
    s.next = s.side
    s.side = ss
    men[ss].prev = None
    s.ratio = 1 - s.ratio

    # the old join point now ends the demoted path
    men[js.next].prev = q
    men[q].next = js.next
    js.next = None
    js.side = None
    js.kind = None
    js.link = None
    js.side_name = ""

    t = men.append(j, js.db, 0, 0)
    qs = men[q]
    qs.side = t
    qs.kind = BranchKind.JOIN
    qs.link = SideLink.JOIN
    qs.side_name = s.side_name
    qs.ratio = 1 - js.ratio
    js.ratio = 0
