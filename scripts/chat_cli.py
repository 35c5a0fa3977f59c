#!/usr/bin/env python3
"""Interactive chat CLI for testing the CodeWizard streaming endpoint."""

import json
import os
import sys

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt


class ChatCLI:
    """Interactive chat interface that renders the event stream."""

    def __init__(self, base_url: str = "http://localhost:8000", api_key: str | None = None):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.api_key = api_key or os.getenv("GROQ_API_KEY")
        self.model = os.getenv("GROQ_MODEL", "moonshotai/kimi-k2-instruct")
        self.messages: list[dict[str, str]] = []
        self.console = Console()
        self.client = httpx.Client(timeout=120.0)

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]🧙 CodeWizard - Interactive Chat[/bold blue]\n"
                "Ask coding questions; documentation lookups are shown as they happen.\n"
                "Commands: /help, /clear, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]❌ Cannot connect to the service at {self.base_url}.[/red]")
            return

        if not self.api_key:
            self.api_key = Prompt.ask("[bold]Groq API key[/bold]", password=True)

        self.console.print("[green]✅ Connected to CodeWizard[/green]\n")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")

                if user_input.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif user_input.lower() == "/help":
                    self._show_help()
                    continue
                elif user_input.lower() == "/clear":
                    self.messages = []
                    self.console.print("[yellow]🔄 Conversation cleared[/yellow]")
                    continue
                elif user_input.strip() == "":
                    continue

                self.messages.append({"role": "user", "content": user_input})
                reply = self._send_messages()
                if reply:
                    self.messages.append({"role": "assistant", "content": reply})
                    self._display_response(reply)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]👋 Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except Exception:
            return False

    def _send_messages(self) -> str | None:
        """Send the conversation and render frames as they arrive."""
        payload = {"groqApiKey": self.api_key, "groqModel": self.model, "messages": self.messages}
        reply = ""

        try:
            with self.client.stream("POST", f"{self.base_url}/api/chatbot", json=payload) as response:
                if response.status_code != 200:
                    response.read()
                    self.console.print(f"[red]❌ API Error: {response.status_code} - {response.text}[/red]")
                    return None

                for line in response.iter_lines():
                    if not line.startswith("data: "):
                        continue
                    data = line[len("data: ") :]
                    if data == "[DONE]":
                        break

                    frame = json.loads(data)
                    if "error" in frame:
                        self.console.print(f"[red]❌ {frame['error']}[/red]")
                        break

                    delta = frame["choices"][0]["delta"]
                    if "content" in delta:
                        reply += delta["content"]
                    elif "tool_execution" in delta:
                        for call in delta["tool_execution"]:
                            self.console.print(f"[dim]🔧 {call['name']} {json.dumps(call['args'])}[/dim]")
                    elif "tool_result" in delta:
                        self._display_tool_result(delta["tool_result"])

        except httpx.HTTPError as e:
            self.console.print(f"[red]❌ Connection error: {e}[/red]")
            return None

        return reply or None

    def _display_tool_result(self, result: dict) -> None:
        style = "red" if result.get("error") else "dim"
        preview = result["content"][:300]
        self.console.print(Panel(preview, title=f"[{style}]{result['name']}[/{style}]", border_style=style))

    def _display_response(self, text: str) -> None:
        """Display the assistant reply with markdown formatting."""
        self.console.print(
            Panel(
                Markdown(text),
                title="[bold green]🧙 CodeWizard[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /clear - Clear the conversation and start over
• /quit or /exit - Exit the chat

[bold]Example Questions:[/bold]
1. "How do I use useEffect in React?"
2. "Show me how to define a route in FastAPI"
3. "What is 2+2?" (no documentation lookup)

[bold]Environment:[/bold]
• GROQ_API_KEY - API key sent with each request
• GROQ_MODEL - Model name (default: moonshotai/kimi-k2-instruct)
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]❓ Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

    chat = ChatCLI(base_url)
    chat.start()


if __name__ == "__main__":
    main()
