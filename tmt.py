#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
too many tabs: personal bookmark/notes manager (SQLite or PostgreSQL)

Commands:
  init                Create the entries table and trigger, print the DB location
  serve               Run the web UI (default 0.0.0.0:9999)
  list                Print all entries, newest first
  add                 Add an entry from the command line
  show                Print one entry
  rm                  Delete one entry

Notes:
- Settings come from TMT_* environment variables, then config.yaml (or --config).
- `serve` is the same app uvicorn would load from toomanytabs.api:app.
"""

import argparse
import sys

import uvicorn

from toomanytabs.api import create_app
from toomanytabs.config import load_settings
from toomanytabs.db import describe
from toomanytabs.errors import StorageError
from toomanytabs.logs import LogContext, setup_logging
from toomanytabs.models import Entry
from toomanytabs.services import entry_svc
from toomanytabs.storage import build_store


# ---------------- Commands ----------------

def cmd_init(args):
    settings = load_settings(args.config)
    store = build_store(settings)
    store.close()
    print("DB ready at", describe(settings))
    return 0


def cmd_serve(args):
    settings = load_settings(args.config)
    setup_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=args.host or settings.host, port=args.port or settings.port)
    return 0


def _print_entry(e):
    print(f"[{e.id}] {e.title or '(untitled)'}")
    print(f"    {e.url}")
    if e.notes:
        for line in e.notes.splitlines():
            print(f"    | {line}")
    print(f"    created {e.created_at.isoformat()}  updated {e.updated_at.isoformat()}")


def cmd_list(args):
    store = build_store(load_settings(args.config))
    try:
        entries = entry_svc.list_entries(store)
    finally:
        store.close()
    if not entries:
        print("(empty)")
    for e in entries:
        _print_entry(e)
    return 0


def cmd_add(args):
    store = build_store(load_settings(args.config))
    try:
        data = Entry(url=args.url, title=args.title, notes=args.notes)
        log = LogContext("CREATE_ENTRY", user="cli")
        new_id = entry_svc.create_entry(store, data, log)
        log.write("OK")
    finally:
        store.close()
    print(new_id)
    return 0


def cmd_show(args):
    store = build_store(load_settings(args.config))
    try:
        e = store.get_one(args.id)
    finally:
        store.close()
    if e is None:
        print(f"entry {args.id} not found", file=sys.stderr)
        return 1
    _print_entry(e)
    return 0


def cmd_rm(args):
    store = build_store(load_settings(args.config))
    log = LogContext("DELETE_ENTRY", user="cli")
    try:
        entry_svc.delete_entry(store, args.id, log)
        log.write("OK")
    except StorageError as e:
        log.write("ERROR", str(e))
        print(f"entry {args.id}: {e}", file=sys.stderr)
        return 1
    finally:
        store.close()
    print("Deleted", args.id)
    return 0


# ---------------- Entry ----------------

def main(argv=None):
    parser = argparse.ArgumentParser(description="too many tabs (bookmarks + notes)")
    parser.add_argument("--config", default=None, help="path to config.yaml")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create schema")
    p_init.set_defaults(func=cmd_init)

    p_serve = sub.add_parser("serve", help="run the web UI")
    p_serve.add_argument("--host", required=False)
    p_serve.add_argument("--port", required=False, type=int)
    p_serve.set_defaults(func=cmd_serve)

    p_list = sub.add_parser("list", help="list entries")
    p_list.set_defaults(func=cmd_list)

    p_add = sub.add_parser("add", help="add an entry")
    p_add.add_argument("--url", required=True)
    p_add.add_argument("--title", default="")
    p_add.add_argument("--notes", default="")
    p_add.set_defaults(func=cmd_add)

    p_show = sub.add_parser("show", help="show one entry")
    p_show.add_argument("id", type=int)
    p_show.set_defaults(func=cmd_show)

    p_rm = sub.add_parser("rm", help="delete one entry")
    p_rm.add_argument("id", type=int)
    p_rm.set_defaults(func=cmd_rm)

    args = parser.parse_args(argv)
    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
