"""Node and gossip commands."""

from __future__ import annotations

import argparse

from ...core.config import get_config
from ...network.registry import NodeKind, Role
from ..utils import run_journaled


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register node, link and gossip commands on the CLI parser."""
    node_parser = subparsers.add_parser("register-node", help="Register a full or light node")
    node_parser.add_argument("node_id", help="Node id")
    node_parser.add_argument("--kind", choices=[k.value for k in NodeKind], required=True)
    node_parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        default=[],
        choices=[r.value for r in Role],
        help="Node role (repeatable)",
    )
    node_parser.add_argument("--storage", type=int, required=True, help="Storage capacity in bytes")
    node_parser.add_argument("--bandwidth", type=int, required=True, help="Bandwidth capacity in bytes/s")
    node_parser.set_defaults(func=cmd_register_node)

    for name, func, help_text in (
        ("add-peer-link", cmd_add_peer_link, "Link two nodes (symmetric)"),
        ("remove-peer-link", cmd_remove_peer_link, "Unlink two nodes (symmetric)"),
    ):
        link_parser = subparsers.add_parser(name, help=help_text)
        link_parser.add_argument("a", help="First node id")
        link_parser.add_argument("b", help="Second node id")
        link_parser.set_defaults(func=func)

    learn_parser = subparsers.add_parser("learn", help="Record that a node learned a block")
    learn_parser.add_argument("node", help="Node id")
    learn_parser.add_argument("block_id", help="Block id")
    learn_parser.add_argument("--at", type=int, required=True, help="Logical learn time")
    learn_parser.set_defaults(func=cmd_learn)

    gossip_parser = subparsers.add_parser("send-gossip", help="Gossip a block to a peer")
    gossip_parser.add_argument("sender", help="Sending node id")
    gossip_parser.add_argument("receiver", help="Receiving node id")
    gossip_parser.add_argument("block_id", help="Block id")
    gossip_parser.add_argument("--at", type=int, required=True, help="Logical delivery time")
    gossip_parser.add_argument("--size", type=int, help="Gossip size in bytes")
    gossip_parser.set_defaults(func=cmd_send_gossip)

    faulty_parser = subparsers.add_parser("mark-faulty", help="Remove a node from the non-faulty set")
    faulty_parser.add_argument("node", help="Node id")
    faulty_parser.set_defaults(func=cmd_mark_faulty)


def cmd_register_node(args: argparse.Namespace) -> int:
    return run_journaled(
        "register-node",
        {
            "node_id": args.node_id,
            "kind": args.kind,
            "roles": sorted(set(args.roles)),
            "storage_cap": args.storage,
            "bandwidth_cap": args.bandwidth,
        },
    )


def cmd_add_peer_link(args: argparse.Namespace) -> int:
    return run_journaled("add-peer-link", {"a": args.a, "b": args.b})


def cmd_remove_peer_link(args: argparse.Namespace) -> int:
    return run_journaled("remove-peer-link", {"a": args.a, "b": args.b})


def cmd_learn(args: argparse.Namespace) -> int:
    return run_journaled("learn", {"node": args.node, "block_id": args.block_id, "at": args.at})


def cmd_send_gossip(args: argparse.Namespace) -> int:
    size = get_config().default_gossip_size if args.size is None else args.size
    return run_journaled(
        "send-gossip",
        {
            "sender": args.sender,
            "receiver": args.receiver,
            "block_id": args.block_id,
            "size_bytes": size,
            "at": args.at,
        },
    )


def cmd_mark_faulty(args: argparse.Namespace) -> int:
    return run_journaled("mark-faulty", {"node": args.node})
