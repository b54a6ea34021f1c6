# cli.py
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.ssrclient import StoreClient

console = Console()
c = StoreClient(base_url=os.environ.get("SSRSTORE_URL", "http://127.0.0.1:5000"))


# Global state for status messages and caching
status_message = "Ready"
current_email: Optional[str] = None
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]], title: str = "📦 Products Catalog"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=6)
    table.add_column("Name", style="bold", width=24)
    table.add_column("Category", width=10)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Was", justify="right", width=10)
    table.add_column("Available", width=9)

    for p in products:
        table.add_row(
            str(p.get("id", "N/A")),
            p.get("name", "N/A"),
            p.get("category", "N/A"),
            f"${p.get('new_price', 0):.2f}",
            f"[strike]${p.get('old_price', 0):.2f}[/strike]",
            "yes" if p.get("available", True) else "no",
        )
    console.print(table)


def show_cart(cart: Dict[str, int]):
    title = Text()
    title.append("🛒 Shopping Cart - ", style="bold")
    title.append(current_email or "Unknown User", style="bold cyan")

    # seeded slots are all zero; only show what is actually held
    held = {k: v for k, v in cart.items() if v}
    if not held:
        console.print(Panel("Your cart is empty 🛍️", title=title, style="blue"))
        return

    names = {str(p.get("id")): p.get("name") for p in product_cache}
    total = 0.0
    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("Item", style="bold", width=30)
    table.add_column("Qty", justify="right", width=8)
    table.add_column("Subtotal", justify="right", width=12)

    prices = {str(p.get("id")): p.get("new_price", 0) for p in product_cache}
    for item_id, qty in sorted(held.items(), key=lambda kv: kv[0]):
        if item_id in names:
            line = prices[item_id] * qty
            total += line
            table.add_row(names[item_id], str(qty), f"${line:.2f}")
        else:
            table.add_row(f"[red]Unknown item: {item_id}[/red]", str(qty), "-")

    title.append(f" - Total: ${total:.2f}", style="bold green")
    console.print(Panel(table, title=title, border_style="blue"))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper with exception handling
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Errors are shown and recorded in status_message; the result is None then.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def refresh_products():
    global product_cache
    product_cache = try_api(c.list_products) or []


def get_product_completer():
    if not product_cache:
        refresh_products()
    ids = [str(p.get("id", "")) for p in product_cache]
    return WordCompleter([i for i in ids if i], ignore_case=True)


def get_category_completer():
    categories = {p.get("category", "") for p in product_cache} | {"women", "men", "kid"}
    return WordCompleter(sorted(cat for cat in categories if cat), ignore_case=True)


# ---------------------------
# Layout and Header
# ---------------------------
def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    who = current_email or "not logged in"
    header.add_row(
        "🛍️ SSR Styles",
        f"[bold blue]Store CLI[/bold blue] [dim]({who})[/dim]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_float(message: str, default: float = 10.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")


def require_login() -> bool:
    if c.token:
        return True
    console.print(show_status("Login or sign up first (options 7/8)", False))
    return False


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message, current_email

    console.clear()
    console.print(create_header())
    refresh_products()

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "7", "📝 Sign up"),
            ("2", "✨ New collection", "8", "🔑 Login"),
            ("3", "🔥 Popular in category", "9", "🛒 View cart"),
            ("4", "➕ Add product", "10", "➕ Add to cart"),
            ("5", "🗑️ Remove product", "11", "➖ Remove from cart"),
            ("6", "🖼️ Upload image", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)

        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 12)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded")
            if products is not None:
                show_products(products)

        elif choice == "2":
            products = try_api(c.new_collection, success_msg="New collection loaded")
            if products is not None:
                show_products(products, title="✨ New Collection")

        elif choice == "3":
            category = prompt_with_autocomplete("Category", completer=get_category_completer(), default="women")
            products = try_api(c.popular, category, success_msg=f"Popular in '{category}' loaded")
            if products is not None:
                show_products(products, title=f"🔥 Popular in {category}")

        elif choice == "4":
            name = prompt_with_autocomplete("Product name")
            image = prompt_with_autocomplete("Image URL (option 6 uploads one)")
            category = prompt_with_autocomplete("🏷️ Category", completer=get_category_completer())
            new_price = ask_float("💰 Price", default=10.0)
            old_price = ask_float("💸 Old price", default=new_price)
            product = try_api(
                c.add_product, name, image, category, new_price, old_price,
                success_msg=f"Product '{name}' added"
            )
            if product:
                console.print(Panel(f"New product id: [green]{product['id']}[/green]"))
                refresh_products()

        elif choice == "5":
            pid = prompt_with_autocomplete("Product ID", completer=get_product_completer())
            if pid.isdigit() and Confirm.ask(f"Remove product {pid}?"):
                try_api(c.remove_product, int(pid), success_msg=f"Product {pid} removed")
                refresh_products()

        elif choice == "6":
            path = prompt_with_autocomplete("Path to image file")
            url = try_api(c.upload_image, path, success_msg="Image uploaded")
            if url:
                console.print(Panel(f"[green]{url}[/green]", title="Image URL"))

        elif choice == "7":
            name = prompt_with_autocomplete("Name")
            email = prompt_with_autocomplete("Email")
            password = Prompt.ask("Password", password=True)
            if try_api(c.signup, name, email, password, success_msg=f"Welcome, {name}") is not None:
                current_email = email

        elif choice == "8":
            email = prompt_with_autocomplete("Email", default=current_email or "")
            password = Prompt.ask("Password", password=True)
            if try_api(c.login, email, password, success_msg=f"Logged in as {email}") is not None:
                current_email = email

        elif choice == "9":
            if require_login():
                cart = try_api(c.get_cart, success_msg="Cart loaded")
                if cart is not None:
                    show_cart(cart)

        elif choice == "10":
            if require_login():
                item = prompt_with_autocomplete("Item (product) ID", completer=get_product_completer())
                times = IntPrompt.ask("How many", default=1)
                for _ in range(max(times, 0)):
                    if try_api(c.add_to_cart, item) is None:
                        break
                else:
                    status_message = f"Added {times} x item {item}"
                cart = try_api(c.get_cart)
                if cart is not None:
                    show_cart(cart)

        elif choice == "11":
            if require_login():
                item = prompt_with_autocomplete("Item (product) ID", completer=get_product_completer())
                if try_api(c.remove_from_cart, item, success_msg=f"Removed one of item {item}") is not None:
                    cart = try_api(c.get_cart)
                    if cart is not None:
                        show_cart(cart)

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Thanks for shopping at SSR Styles! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n\n[bold red]Unexpected error: {e}[/bold red]")
        sys.exit(1)
