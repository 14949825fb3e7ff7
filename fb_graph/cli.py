from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence

import httpx

from .config import RuntimeSecrets, load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .errors import ConfigError, FacebookError
from .facebook import Facebook
from .graph_client import GraphClient, iter_pages
from .paging import PagingParameters
from .run_log import RunLogger

CONNECTIONS = ("feed", "home", "posts", "statuses", "links", "tagged")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fb_graph")

    subparsers = parser.add_subparsers(dest="command", required=True)

    feed = subparsers.add_parser(
        "feed",
        help="Walk a feed connection page by page and print one JSON line per post.",
    )
    feed.add_argument("--config", required=True, help="Path to YAML config file.")
    feed.add_argument("--out", required=True, help="Output directory for the run log.")
    feed.add_argument("--owner", default="me", help="Id of the feed owner (default: me).")
    feed.add_argument(
        "--connection",
        choices=CONNECTIONS,
        default="feed",
        help="Which feed connection to read.",
    )
    feed.add_argument("--pages", type=int, default=None, help="Maximum number of pages to fetch.")
    feed.add_argument("--limit", type=int, default=None, help="Page size (defaults to paging.default_limit).")
    feed.add_argument(
        "--offline",
        action="store_true",
        help="Serve canned Graph responses instead of calling the API.",
    )
    feed.set_defaults(_handler=_cmd_feed)

    profile = subparsers.add_parser("profile", help="Fetch a user profile.")
    profile.add_argument("--config", required=True, help="Path to YAML config file.")
    profile.add_argument("--out", required=True, help="Output directory for the run log.")
    profile.add_argument("--id", dest="user_id", default="me", help="User id (default: me).")
    profile.add_argument(
        "--offline",
        action="store_true",
        help="Serve canned Graph responses instead of calling the API.",
    )
    profile.set_defaults(_handler=_cmd_profile)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _open_facebook(cfg: AppConfig, args: argparse.Namespace, log: RunLogger) -> Facebook:
    http_client: httpx.Client | None = None
    if bool(getattr(args, "offline", False)):
        from .offline import OFFLINE_ACCESS_TOKEN, offline_http_client

        secrets = RuntimeSecrets(access_token=OFFLINE_ACCESS_TOKEN)
        http_client = offline_http_client()
    else:
        secrets = resolve_runtime_secrets(cfg)

    log.info(
        "config_loaded",
        config_path=str(args.config),
        api_version=cfg.graph.api_version,
        access_token_env=cfg.graph.access_token_env,
        offline=bool(getattr(args, "offline", False)),
    )
    graph = GraphClient.from_config(cfg, secrets, logger=log, http_client=http_client, owns_http=True)
    return Facebook(graph)


def _post_line(post: Any) -> str:
    return json.dumps(
        post.model_dump(mode="json", by_alias=True, exclude_none=True),
        ensure_ascii=False,
        sort_keys=True,
    )


def _cmd_feed(args: argparse.Namespace) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    log_path = out_dir / "run.log"
    with RunLogger.open(log_path, overwrite=True) as log:
        log.info(
            "feed_command_started",
            config_path=str(args.config),
            owner=args.owner,
            connection=args.connection,
        )
        try:
            cfg = load_config(args.config)
            limit = args.limit if args.limit is not None else cfg.paging.default_limit
            max_pages = args.pages if args.pages is not None else cfg.paging.max_pages
            if limit < 1 or max_pages < 1:
                raise ConfigError("--limit and --pages must be positive")

            with _open_facebook(cfg, args, log) as fb:
                fetchers = {
                    "feed": lambda p: fb.feed.get_feed(args.owner, p),
                    "home": fb.feed.get_home_feed,
                    "posts": lambda p: fb.feed.get_posts(args.owner, p),
                    "statuses": lambda p: fb.feed.get_statuses(args.owner, p),
                    "links": lambda p: fb.feed.get_links(args.owner, p),
                    "tagged": lambda p: fb.feed.get_tagged(args.owner, p),
                }

                pages = 0
                posts = 0
                for page in iter_pages(fetchers[args.connection], PagingParameters(limit=limit), max_pages=max_pages):
                    pages += 1
                    for post in page:
                        posts += 1
                        print(_post_line(post))
                    log.info("feed_page_fetched", page=pages, posts=len(page), has_next=page.has_next)

            log.info("feed_command_completed", pages=pages, posts=posts)
            _eprint(f"pages={pages} posts={posts} requests={log.count('graph_request')} run_log={log_path}")
            return 0
        except Exception as e:
            log.exception("feed_command_failed", exc=e)
            raise


def _cmd_profile(args: argparse.Namespace) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    log_path = out_dir / "run.log"
    with RunLogger.open(log_path, overwrite=True) as log:
        log.info("profile_command_started", config_path=str(args.config), user_id=args.user_id)
        try:
            cfg = load_config(args.config)
            with _open_facebook(cfg, args, log) as fb:
                user = fb.users.get_user_profile(args.user_id)
                image_url = fb.users.get_user_profile_image_url(args.user_id)

            payload = user.model_dump(mode="json", exclude_none=True)
            payload["profile_image_url"] = image_url
            print(json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True))
            log.info("profile_command_completed", user_id=user.id)
            return 0
        except Exception as e:
            log.exception("profile_command_failed", exc=e)
            raise


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except FacebookError as e:
        _eprint(f"{type(e).__name__}: {e}")
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
