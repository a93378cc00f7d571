"""
Connect named sub-chains to the junctions that reference them.

Shared by the ZMENSUR and XMENSUR readers. Both produce one Mensur arena that
holds the main chain (`mensur.head`) and every named chain, plus a dict
mapping names to chain heads.
"""

import logging

from ..errors import TopologyError
from ..mensur import BranchKind, SideLink


def resolve_branches(mensur, chains):
    """
    Link TONEHOLE/ADDON/SPLIT junctions to their chains and JOINs back to the
    tail of the chain owned by the matching SPLIT.

    A chain referenced by more than one owner is copied for every further
    owner, so no segment lives on two paths. A JOIN always refers to the first
    owner's instance.

    Raises:
        TopologyError: unknown chain name, a chain containing itself, or a
            JOIN without an owning junction.
    """
    owned = {}
    resolving = []

    def resolve_chain(head):
        for i in list(mensur.chain(head)):
            s = mensur[i]
            if not s.side_name or s.kind == BranchKind.JOIN:
                continue
            name = s.side_name
            if name not in chains:
                raise TopologyError(f"cannot find branch \"{name}\"")
            if name in resolving:
                raise TopologyError(f"branch \"{name}\" contains itself: {' -> '.join(resolving + [name])}")
            if name in owned:
                logging.debug(f"branch \"{name}\" is used more than once, copying it")
                child = mensur.copy_chain(chains[name])
            else:
                child = chains[name]
                owned[name] = child
            s.side = child
            s.link = SideLink.OWNED

            resolving.append(name)
            resolve_chain(child)
            resolving.pop()

    resolve_chain(mensur.head)

    for i in mensur.reachable():
        s = mensur[i]
        if s.kind != BranchKind.JOIN:
            continue
        if s.side_name not in owned:
            raise TopologyError(f"JOIN to branch \"{s.side_name}\" has no matching SPLIT")
        s.side = mensur.last(owned[s.side_name])
        s.link = SideLink.JOIN

    logging.debug(f"resolved {len(owned)} branches")
    return mensur
