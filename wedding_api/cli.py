"""
命令行入口

    wedding-api serve
    wedding-api link "Uncle Rajan" "Aunt Meena"
    wedding-api visitors --password ...
    wedding-api clear --password ...
"""
import argparse
import asyncio
import getpass
import sys
from typing import List, Optional

from wedding_api.config import get_settings
from wedding_api.services.guest_links import build_guest_link, summarize_visitors
from wedding_api.services.tracking_client import AdminClient


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "wedding_api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


def _link(args: argparse.Namespace) -> int:
    base_url = args.base_url or get_settings().invite_base_url
    status = 0
    for name in args.names:
        try:
            link = build_guest_link(name, base_url)
        except ValueError as exc:
            print(f"错误: {exc}", file=sys.stderr)
            status = 1
            continue
        print(f"{link.display_name}\t{link.url}")
    return status


def _password(args: argparse.Namespace) -> str:
    return args.password or getpass.getpass("管理口令: ")


def _visitors(args: argparse.Namespace) -> int:
    client = AdminClient(args.api_url or get_settings().api_base_url)
    result = asyncio.run(client.list_visitors(_password(args)))
    if not result.success:
        print(f"错误: {result.error}", file=sys.stderr)
        return 1
    if result.message:
        print(result.message)

    summary = summarize_visitors(result.visitors)
    print(
        f"总计 {summary.total} | 手机 {summary.mobile} | 电脑 {summary.desktop} "
        f"| 个性化链接 {summary.personalized} (source={result.source})"
    )
    for visitor in result.visitors:
        location = visitor.get("location") or {}
        print(
            f"{visitor.get('timestamp')}\t{visitor.get('guestName')}\t"
            f"{visitor.get('deviceType')}\t{location.get('city')}, {location.get('country')}"
        )
    return 0


def _clear(args: argparse.Namespace) -> int:
    client = AdminClient(args.api_url or get_settings().api_base_url)
    result = asyncio.run(client.clear_visitors(_password(args)))
    if not result.success:
        print(f"错误: {result.error}", file=sys.stderr)
        return 1
    print(result.message)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wedding-api", description="Wedding invite visitor tracking")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="启动 API 服务")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.set_defaults(func=_serve)

    link = sub.add_parser("link", help="生成个性化请柬链接")
    link.add_argument("names", nargs="+", help="宾客姓名")
    link.add_argument("--base-url", help="请柬站点地址")
    link.set_defaults(func=_link)

    for name, func, help_text in (
        ("visitors", _visitors, "查看访问记录"),
        ("clear", _clear, "清空访问记录"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--password", help="管理口令（不填则交互输入）")
        cmd.add_argument("--api-url", help="API 地址")
        cmd.set_defaults(func=func)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
