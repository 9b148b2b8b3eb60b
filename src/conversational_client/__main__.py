"""
Interactive chat shell.

Usage
-----
    OPENAI_API_KEY=... python -m conversational_client

    USER_ID=bob MODEL=gpt-4o OPENAI_BASE_URL=http://localhost:11434/v1 \\
        python -m conversational_client

Conversations are kept in CHAT_STORAGE_PATH (see 'ClientSettings'). Replies
run in the background, so '/stop' can cancel one and '/switch' works while a
reply is pending.

Commands
--------
/new            Start a new conversation.
/list           List conversations, the active one marked with '*'.
/switch <n>     Switch to conversation number n from '/list'.
/delete         Delete the active conversation.
/delete-all     Delete every conversation.
/regenerate     Regenerate the last assistant reply.
/like, /dislike Rate the last assistant reply.
/stop           Cancel the pending reply of the active conversation.
/lang <tag>     Set the reply language.
/quit           Exit.
"""

import asyncio
import os
import sys

from loguru import logger

from conversational_client.auth.session import SessionIdentityProvider
from conversational_client.config import ClientSettings
from conversational_client.controller import ConversationalClientController
from conversational_client.conversation_database.data_models.message import Feedback, Message
from conversational_client.errors import ConversationalClientError
from conversational_client.llms.openai import OpenAILLM
from conversational_client.replies.llm import LLMReplyService
from conversational_client.storage.json_file import JSONFileKeyValueStorage


def build_controller(settings: ClientSettings, identity: SessionIdentityProvider) -> ConversationalClientController:
    if not settings.openai_api_key and not settings.openai_base_url:
        raise SystemExit(
            "Neither OPENAI_API_KEY nor OPENAI_BASE_URL is set.\n"
            "Example: OPENAI_BASE_URL=http://localhost:11434/v1 MODEL=llama3.2 python -m conversational_client"
        )
    llm = OpenAILLM(
        model_name=settings.model,
        # OpenAI-compatible local servers ignore the key but the client requires one.
        openai_api_key=settings.openai_api_key or "unused",
        base_url=settings.openai_base_url,
    )
    return ConversationalClientController(
        storage=JSONFileKeyValueStorage(settings.storage_path),
        reply_service=LLMReplyService(llm, system_prompt=settings.system_prompt),
        identity=identity,
        default_language=settings.default_language,
    )


def print_message(message: Message | None) -> None:
    if message is None:
        print("(cancelled)")
        return
    prefix = "!" if message.is_error else "<"
    print(f"{prefix} {message.content}")


def print_log(controller: ConversationalClientController) -> None:
    for message in controller.messages:
        if message.is_assistant:
            print_message(message)
        else:
            print(f"> {message.content}")


def last_assistant_message(controller: ConversationalClientController) -> Message | None:
    return next((message for message in reversed(controller.messages) if message.is_assistant), None)


def print_conversations(controller: ConversationalClientController) -> None:
    active = controller.active_conversation
    for number, conversation in enumerate(controller.conversations, start=1):
        marker = "*" if active and conversation.id == active.id else " "
        print(f"{marker} {number}. {conversation.title} ({conversation.timestamp:%Y-%m-%d %H:%M})")


async def print_reply(coroutine) -> None:
    try:
        print_message(await coroutine)
    except ConversationalClientError as exc:
        print(f"! {exc}")


async def run_shell(controller: ConversationalClientController) -> None:
    tasks: set[asyncio.Task] = set()

    def spawn(coroutine) -> None:
        task = asyncio.create_task(print_reply(coroutine))
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    print_log(controller)

    while True:
        line = (await asyncio.to_thread(input, "")).strip()
        if not line:
            continue
        command, _, argument = line.partition(" ")

        try:
            match command:
                case "/quit":
                    break
                case "/new":
                    controller.create_conversation()
                case "/list":
                    print_conversations(controller)
                case "/switch":
                    conversation = controller.conversations[int(argument) - 1]
                    controller.set_active_conversation(conversation)
                    print_log(controller)
                case "/delete":
                    if controller.active_conversation is not None:
                        controller.delete_conversation(controller.active_conversation.id)
                case "/delete-all":
                    controller.delete_all_conversations()
                case "/regenerate":
                    message = last_assistant_message(controller)
                    if message is not None:
                        spawn(controller.regenerate_response(message.id))
                case "/like" | "/dislike":
                    message = last_assistant_message(controller)
                    if message is not None:
                        feedback = Feedback.POSITIVE if command == "/like" else Feedback.NEGATIVE
                        controller.provide_message_feedback(message.id, feedback)
                case "/stop":
                    controller.stop_response()
                case "/lang":
                    controller.set_preferred_language(argument.strip())
                case _ if command.startswith("/"):
                    print(f"Unknown command {command!r}")
                case _:
                    spawn(controller.send_message(line))
        except (ConversationalClientError, ValueError, IndexError) as exc:
            print(f"! {exc}")

    controller.close()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)


def main() -> None:
    settings = ClientSettings.from_env()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    identity = SessionIdentityProvider()
    controller = build_controller(settings, identity)
    identity.sign_in(os.getenv("USER_ID") or os.getenv("USER") or "local")
    try:
        asyncio.run(run_shell(controller))
    except (EOFError, KeyboardInterrupt):
        controller.close()


if __name__ == "__main__":
    main()
