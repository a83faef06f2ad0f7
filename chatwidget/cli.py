"""Command-line developer console for the chat widget proxy.

Subcommands:
    serve     run the proxy server
    chat      interactive chat with an assistant through a running proxy
    verify    run the setup checks against a running proxy
    eduspace  call the EduSpace teacher API directly
"""

import argparse
import asyncio
import json
import sys

import httpx

from chatwidget.config import settings
from chatwidget.integrations.chat_client import ChatSession
from chatwidget.integrations.eduspace import (
    EXAM_WITH_DOCUMENT_ID,
    EXAM_WITH_DOCUMENT_TEXT,
    LESSON_EXAMPLES,
    EduSpaceClient,
    EduSpaceError,
)
from chatwidget.services.assistant_catalog import get_assistant, resolve_api_key

DEFAULT_PROXY_URL = f"http://127.0.0.1:{settings.PORT}"


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


# ── serve ────────────────────────────────────────────────
def cmd_serve(args) -> int:
    from chatwidget.main import run

    run(host=args.host, port=args.port, reload=args.reload)
    return 0


# ── chat ─────────────────────────────────────────────────
async def _chat_loop(session: ChatSession) -> None:
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line or line.strip() in ("/quit", "/exit"):
            return
        reply = await session.send(line)
        if reply is None:
            continue
        print(f"assistant> {reply.content}")
        for source in reply.sources or []:
            print(f"  [source] {source.title}" + (f" <{source.url}>" if source.url else ""))


def cmd_chat(args) -> int:
    assistant_id = args.assistant or settings.DEFAULT_ASSISTANT_ID
    assistant = get_assistant(assistant_id)
    api_key = args.api_key or (resolve_api_key(assistant) if assistant else "")
    api_id = assistant.api_id if assistant else "1"

    session = ChatSession(args.proxy, assistant_id, api_key, api_id=api_id)
    print(f"Chatting with {assistant.name if assistant else assistant_id} (visitor {session.visitor_id})")
    print("Type a message, /quit to leave.")
    asyncio.run(_chat_loop(session))
    return 0


# ── verify ───────────────────────────────────────────────
def cmd_verify(args) -> int:
    params = {"assistant": args.assistant, "apiKey": args.api_key}
    try:
        response = httpx.get(f"{args.proxy.rstrip('/')}/api/verify-setup", params=params, timeout=None)
    except httpx.RequestError as e:
        print(f"Could not reach the proxy at {args.proxy}: {e}", file=sys.stderr)
        return 2
    body = response.json()
    for test in body.get("results", {}).get("tests", []):
        mark = "✓" if test["passed"] else "✗"
        print(f"{mark} {test['name']}: {test['message']}")
    summary = body.get("summary")
    if summary:
        print(f"{summary['passed']}/{summary['totalTests']} checks passed")
    else:
        _print_json(body)
    return 0 if body.get("success") else 1


# ── eduspace ─────────────────────────────────────────────
def _exam_payload(args):
    if args.payload:
        return args.payload
    return EXAM_WITH_DOCUMENT_TEXT if args.example == "text" else EXAM_WITH_DOCUMENT_ID


def _lesson_payload(args):
    return args.payload or LESSON_EXAMPLES[args.example]


async def _run_eduspace(args):
    client = EduSpaceClient(base_url=args.base_url, api_key=args.api_key)
    action = args.action
    if action == "verify":
        return await client.verify_key()
    if action == "upload":
        return await client.upload_document(args.file)
    if action == "list":
        return await client.list_documents(page=args.page, per_page=args.per_page)
    if action == "get":
        return await client.get_document(args.document_id)
    if action == "exam":
        return await client.generate_exam(_exam_payload(args))
    return await client.generate_lesson(_lesson_payload(args))


def cmd_eduspace(args) -> int:
    try:
        result = asyncio.run(_run_eduspace(args))
    except EduSpaceError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    _print_json(result.to_dict())
    if args.action == "verify":
        print("API key verified" if result.ok else "API key rejected", file=sys.stderr)
    return 0 if result.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatwidget", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the proxy server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true", default=None)
    serve.set_defaults(func=cmd_serve)

    chat = sub.add_parser("chat", help="Chat with an assistant through the proxy")
    chat.add_argument("--proxy", default=DEFAULT_PROXY_URL)
    chat.add_argument("--assistant", default=None, help="Assistant share link")
    chat.add_argument("--api-key", default=None)
    chat.set_defaults(func=cmd_chat)

    verify = sub.add_parser("verify", help="Check an API key and assistant id")
    verify.add_argument("--proxy", default=DEFAULT_PROXY_URL)
    verify.add_argument("--assistant", required=True)
    verify.add_argument("--api-key", required=True)
    verify.set_defaults(func=cmd_verify)

    edu = sub.add_parser("eduspace", help="Call the EduSpace teacher API")
    edu.add_argument("--base-url", default=None)
    edu.add_argument("--api-key", default=None)
    edu.set_defaults(func=cmd_eduspace)
    actions = edu.add_subparsers(dest="action", required=True)

    actions.add_parser("verify", help="Verify the API key")
    upload = actions.add_parser("upload", help="Upload a PDF, text or markdown file (max 50MB)")
    upload.add_argument("file")
    listing = actions.add_parser("list", help="List documents")
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--per-page", type=int, default=10)
    get = actions.add_parser("get", help="Show one document")
    get.add_argument("document_id")
    exam = actions.add_parser("exam", help="Generate an exam")
    exam.add_argument("--payload", default=None, help="JSON request body")
    exam.add_argument("--example", choices=["document", "text"], default="document")
    lesson = actions.add_parser("lesson", help="Generate a lesson")
    lesson.add_argument("--payload", default=None, help="JSON request body")
    lesson.add_argument("--example", choices=sorted(LESSON_EXAMPLES), default="text")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
