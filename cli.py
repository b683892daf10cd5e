# cli.py
import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from prompt_toolkit import prompt
from prompt_toolkit.completion import PathCompleter, WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from storeadmin import AdminClient, AsyncAdminClient, AuthError, AuthSession, Settings, StoreAdminError, TokenStore
from storeadmin import rates, views
from storeadmin.errors import DeleteFailed
from storeadmin.forms import CategoryForm, ProductForm, submit_category, submit_product
from storeadmin.models import CURRENCY_CODES, Category, DashboardStats, Product
from storeadmin.views import ListState

console = Console()
logger = logging.getLogger("storeadmin.cli")

status_message = "Ready"

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def build_session(settings: Settings) -> AuthSession:
    return AuthSession(AdminClient.from_settings(settings), TokenStore(settings.token_file))


# ---------------------------
# Display helpers
# ---------------------------
def _short(value: str, width: int = 40) -> str:
    if value.startswith("data:"):
        return value.split(",", 1)[0] + ",…"
    return value if len(value) <= width else value[:width - 1] + "…"


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{escape(message)}[/{style}]", title="Status")


def _show_list_error(state: ListState, what: str) -> bool:
    if state.status != views.ERROR:
        return False
    console.print(Panel.fit(f"[red]{state.error}[/red]\nChoose the option again to retry.",
                            title=f"❌ {what}", border_style="red"))
    return True


def show_products(state: ListState):
    if _show_list_error(state, "Products"):
        return
    if not state.items:
        console.print('[italic yellow]No products yet. Choose "Add product" to create one.[/italic yellow]')
        return

    table = Table(
        title="📦 Products",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("#", justify="right", width=4)
    table.add_column("Image", width=24)
    table.add_column("Name", style="bold", width=22)
    table.add_column("Category", width=14)
    table.add_column("Base Price", justify="right", width=12)
    table.add_column("Stock", width=14)
    table.add_column("Featured", justify="center", width=8)

    for i, p in enumerate(state.items, 1):
        image = _short(views.thumbnail_label(p), 22)
        stock_style = "green" if p.in_stock else "red"
        table.add_row(
            str(i),
            f"{image}\n[dim]{views.image_count_label(p)}[/dim]",
            p.name,
            p.category,
            views.base_price_label(p),
            f"[{stock_style}]{views.stock_label(p)}[/{stock_style}]",
            views.featured_label(p),
        )
    console.print(table)


def show_categories(state: ListState):
    if _show_list_error(state, "Categories"):
        return
    if not state.items:
        console.print('[italic yellow]No categories yet. Choose "Add category" to create one.[/italic yellow]')
        return

    table = Table(title="🏷️ Categories", box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("#", justify="right", width=4)
    table.add_column("Icon", width=6)
    table.add_column("Name", style="bold", width=24)
    table.add_column("Description", width=40)
    for i, c in enumerate(state.items, 1):
        table.add_row(str(i), c.icon, c.name, c.description)
    console.print(table)


def show_dashboard(stats: DashboardStats):
    grid = Table.grid(padding=(0, 4))
    for _ in range(4):
        grid.add_column(justify="center")
    grid.add_row(
        f"📦 [bold]{stats.total_products}[/bold]\nTotal Products",
        f"🏷️ [bold]{stats.total_categories}[/bold]\nCategories",
        f"✅ [bold green]{stats.in_stock}[/bold green]\nIn Stock",
        f"❌ [bold red]{stats.out_of_stock}[/bold red]\nOut of Stock",
    )
    console.print(Panel(grid, title="📊 Dashboard", border_style="blue"))


def show_rates(table_rates: dict, title: str = "💱 Exchange Rates (per 1 USD)"):
    table = Table(title=title, box=box.ROUNDED, header_style="bold green")
    table.add_column("Code", style="bold", width=6)
    table.add_column("Currency", width=20)
    table.add_column("Symbol", width=6)
    table.add_column("Rate", justify="right", width=10)
    for cur in rates.CURRENCIES:
        value = table_rates.get(cur.code)
        table.add_row(cur.code, cur.name, cur.symbol, "-" if value is None else f"{value:g}")
    console.print(table)


def show_product_form(form: ProductForm):
    title = "➕ New Product" if form.is_new else f"✏️ Edit Product {form.product_id}"
    fields = Table.grid(padding=(0, 2))
    fields.add_column(style="bold cyan")
    fields.add_column()
    fields.add_row("Name", form.name or "[dim]-[/dim]")
    fields.add_row("Category", form.category or "[dim]-[/dim]")
    fields.add_row("Description", form.description or "[dim]-[/dim]")
    fields.add_row("Base price (USD)", form.base_price or "[dim]-[/dim]")
    fields.add_row("In stock", "yes" if form.in_stock else "no")
    fields.add_row("Featured", "yes" if form.featured else "no")
    if form.images:
        lines = [
            f"{i}. {_short(img)}" + (" [blue](primary)[/blue]" if i == 0 else "")
            for i, img in enumerate(form.images)
        ]
        fields.add_row("Images", "\n".join(lines))
    else:
        fields.add_row("Images", "[dim]none[/dim]")
    console.print(Panel(fields, title=title, border_style="cyan"))
    if form.error:
        console.print(show_status(form.error, False))


# ---------------------------
# API wrapper
# ---------------------------
def try_api(session: AuthSession, fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) under a spinner. Errors become a red status panel;
    an auth failure also ends the session.
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
    except AuthError as e:
        logger.warning("auth failure, logging out: %s", e)
        session.logout()
        status_message = "Error: session expired, please log in again"
        console.print(show_status(status_message, False))
        return None
    except StoreAdminError as e:
        status_message = f"Error: {e}"
        console.print(show_status(status_message, False))
        return None


# ---------------------------
# Layout and input helpers
# ---------------------------
def create_header(session: AuthSession):
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    who = f"👤 {session.user.username} ({session.user.role})" if session.user else "not logged in"
    header.add_row(
        "🛍️ Store Admin",
        "[bold blue]Catalog administration[/bold blue]",
        f"[dim]{who} · {now}[/dim]"
    )
    return Panel(header, style="bold blue")


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_paths(message: str) -> List[str]:
    raw = prompt(f"{message} ", completer=PathCompleter(expanduser=True), style=custom_style).strip()
    return [p for p in raw.split(";") if p.strip()] if raw else []


def pick(items: Sequence, label: str):
    if not items:
        console.print(f"[italic yellow]No {label} to choose from[/italic yellow]")
        return None
    index = IntPrompt.ask(f"{label.capitalize()} number", default=1)
    if not 1 <= index <= len(items):
        console.print("[red]No such row.[/red]")
        return None
    return items[index - 1]


def login_screen(session: AuthSession) -> None:
    console.print(Panel.fit("[bold]Store Admin[/bold]\nSign in to manage your store", title="🔐 Login"))
    while not session.is_authenticated:
        username = Prompt.ask("Username")
        password = Prompt.ask("Password", password=True)
        with console.status("Logging in..."):
            result = session.login(username, password)
        if not result.success:
            console.print(show_status(result.message, False))


# ---------------------------
# Forms
# ---------------------------
def _category_completer(session: AuthSession):
    cats = try_api(session, session.client.list_categories, session.context()) or []
    return WordCompleter([c.name for c in cats], ignore_case=True)


def edit_rates(table_rates: dict) -> dict:
    code = prompt_with_autocomplete("Currency code", completer=WordCompleter(list(CURRENCY_CODES), ignore_case=True))
    code = code.strip().upper()
    if code not in CURRENCY_CODES:
        console.print(f"[red]Unknown currency {code!r}[/red]")
        return table_rates
    raw = Prompt.ask(f"Rate for {code} (per 1 USD)", default=str(table_rates.get(code, 0)))
    return rates.update_rate(table_rates, code, raw)


def run_product_form(session: AuthSession, product: Optional[Product]) -> Optional[Product]:
    form = ProductForm.for_product(product)
    categories = _category_completer(session)
    while True:
        show_product_form(form)
        choice = Prompt.ask(
            "(n)ame (c)ategory (d)escription (p)rice (r)ate (i)n-stock (f)eatured\n"
            "add (u)rl  add fi(l)es  (x) replace  (m) remove  (o) reorder  (s)ave  (q) cancel",
            default="s",
        ).strip().lower()
        try:
            if choice == "n":
                form = form.with_field("name", prompt_with_autocomplete("Name", default=form.name))
            elif choice == "c":
                form = form.with_field("category", prompt_with_autocomplete("Category", categories, form.category))
            elif choice == "d":
                form = form.with_field("description", prompt_with_autocomplete("Description", default=form.description))
            elif choice == "p":
                form = form.with_field("base_price", Prompt.ask("Base price (USD)", default=form.base_price or "0"))
            elif choice == "r":
                show_rates(form.exchange_rates, title="💱 Product exchange rates")
                form = form.model_copy(update={"exchange_rates": edit_rates(form.exchange_rates)})
            elif choice == "i":
                form = form.with_field("in_stock", not form.in_stock)
            elif choice == "f":
                form = form.with_field("featured", not form.featured)
            elif choice == "u":
                form = form.add_image_url(prompt_with_autocomplete("Image URL"))
            elif choice == "l":
                form = form.add_image_files(ask_paths("Image file(s), separated by ';'"))
            elif choice == "x":
                index = IntPrompt.ask("Replace image at position", default=0)
                paths = ask_paths("Replacement image file")
                form = form.replace_image(index, paths[0] if paths else None)
            elif choice == "m":
                form = form.remove_image(IntPrompt.ask("Remove image at position", default=0))
            elif choice == "o":
                source = IntPrompt.ask("Move image from position", default=0)
                target = IntPrompt.ask("to position", default=0)
                form = form.reorder_images(source, target)
            elif choice == "s":
                with console.status("Saving..."):
                    form, saved = submit_product(session.client, session.context(), form)
                if saved is not None:
                    console.print(show_status(f"Product '{saved.name}' saved", True))
                    return saved
            elif choice == "q":
                return None
        except StoreAdminError as e:
            form = form.with_error(str(e))


def run_category_form(session: AuthSession, category: Optional[Category]) -> Optional[Category]:
    form = CategoryForm.for_category(category)
    form = form.with_field("name", Prompt.ask("Name", default=form.name or None))
    form = form.with_field("icon", Prompt.ask("Icon", default=form.icon))
    form = form.with_field("description", Prompt.ask("Description", default=form.description))
    while True:
        form, saved = submit_category(session.client, session.context(), form)
        if saved is not None:
            console.print(show_status(f"Category '{saved.name}' saved", True))
            return saved
        console.print(show_status(form.error, False))
        if not Confirm.ask("Try again?"):
            return None


# ---------------------------
# Screens
# ---------------------------
def _reload(session: AuthSession, view: views.CollectionView, show) -> None:
    state = try_api(session, view.after_save)
    if state is not None:
        show(state)


def products_screen(session: AuthSession, action: str):
    view = views.products_view(session.client, session.context())
    state = try_api(session, view.load)
    if state is None:
        return
    show_products(state)
    if action == "add":
        if run_product_form(session, None):
            _reload(session, view, show_products)
    elif action == "edit":
        product = pick(view.items, "product")
        if product and run_product_form(session, product):
            _reload(session, view, show_products)
    elif action == "delete":
        product = pick(view.items, "product")
        if product is None:
            return
        try:
            if view.delete(product.id, lambda: Confirm.ask(f"Delete '{product.name}'?")):
                console.print(show_status("Product deleted", True))
                show_products(view.state)
        except DeleteFailed as e:
            console.print(Panel.fit(f"[red]{e}[/red]", title="⚠️ Alert", border_style="red"))
            Prompt.ask("Press enter to continue", default="")
    elif action == "price":
        product = pick(view.items, "product")
        if product is None:
            return
        code = prompt_with_autocomplete(
            "Currency code", completer=WordCompleter(list(CURRENCY_CODES), ignore_case=True)).strip().upper()
        amount = rates.display_price(product, code)
        console.print(Panel.fit(
            f"{product.name}: {views.base_price_label(product)} USD → [bold]{rates.format_price(amount, code)}[/bold]"
            + ("" if amount is not None else f"\n[yellow]No {code} rate on this product[/yellow]"),
            title="💱 Price"))


def categories_screen(session: AuthSession, action: str):
    view = views.categories_view(session.client, session.context())
    state = try_api(session, view.load)
    if state is None:
        return
    show_categories(state)
    if action == "add":
        if run_category_form(session, None):
            _reload(session, view, show_categories)
    elif action == "edit":
        category = pick(view.items, "category")
        if category and run_category_form(session, category):
            _reload(session, view, show_categories)
    elif action == "delete":
        category = pick(view.items, "category")
        if category is None:
            return
        try:
            if view.delete(category.id, lambda: Confirm.ask(f"Delete '{category.name}'?")):
                console.print(show_status("Category deleted", True))
                show_categories(view.state)
        except DeleteFailed as e:
            console.print(Panel.fit(f"[red]{e}[/red]", title="⚠️ Alert", border_style="red"))
            Prompt.ask("Press enter to continue", default="")


def settings_screen(session: AuthSession, table_rates: dict) -> dict:
    while True:
        show_rates(table_rates)
        console.print("[dim]These rates convert product prices from USD (base currency) to other currencies. "
                      "E.g. a $100 product at an INR rate of 82.5 costs ₹8,250.[/dim]")
        choice = Prompt.ask("(e)dit a rate  (s)ave rates  (b)ack", choices=["e", "s", "b"], default="b")
        if choice == "e":
            table_rates = edit_rates(table_rates)
        elif choice == "s":
            saved = try_api(session, rates.save_global_rates, session.client, session.context(), table_rates,
                            success_msg="✓ Saved!")
            if saved is not None:
                table_rates = saved
        else:
            return table_rates


# ---------------------------
# Main menu
# ---------------------------
def menu(session: AuthSession):
    global status_message

    console.clear()
    with console.status("Loading..."):
        session.restore()
    global_rates = rates.default_rates()

    while True:
        if not session.is_authenticated:
            login_screen(session)
            console.print(create_header(session))

        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📊 Dashboard", "7", "🏷️ List categories"),
            ("2", "📦 List products", "8", "➕ Add category"),
            ("3", "➕ Add product", "9", "✏️ Edit category"),
            ("4", "✏️ Edit product", "10", "🗑️ Delete category"),
            ("5", "🗑️ Delete product", "11", "⚙️ Exchange rates"),
            ("6", "💱 Price in currency", "l", "🚪 Logout"),
            ("", "", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 12)] + ["l", "logout", "q", "quit", "exit"])
        ).strip().lower()

        if choice == "1":
            stats = try_api(session, views.load_dashboard_stats, session.client, session.context())
            if stats is not None:
                show_dashboard(stats)
        elif choice == "2":
            products_screen(session, "list")
        elif choice == "3":
            products_screen(session, "add")
        elif choice == "4":
            products_screen(session, "edit")
        elif choice == "5":
            products_screen(session, "delete")
        elif choice == "6":
            products_screen(session, "price")
        elif choice == "7":
            categories_screen(session, "list")
        elif choice == "8":
            categories_screen(session, "add")
        elif choice == "9":
            categories_screen(session, "edit")
        elif choice == "10":
            categories_screen(session, "delete")
        elif choice == "11":
            global_rates = settings_screen(session, global_rates)
        elif choice in ("l", "logout"):
            session.logout()
            status_message = "Logged out"
        elif choice in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Bye! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


# ---------------------------
# One-shot commands
# ---------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Store admin CLI")
    parser.add_argument("--api-url", help="API base URL (default: $STORE_ADMIN_API_URL)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("menu", help="Interactive menu (default)")
    lg = subparsers.add_parser("login", help="Log in and remember the token")
    lg.add_argument("--username", required=True)
    lg.add_argument("--password", help="Prompted for when omitted")
    subparsers.add_parser("logout", help="Forget the stored token")
    subparsers.add_parser("whoami", help="Show the logged-in user")
    subparsers.add_parser("list-products", help="List all products")
    subparsers.add_parser("list-categories", help="List all categories")
    subparsers.add_parser("stats", help="Show dashboard counts")

    dp = subparsers.add_parser("delete-product", help="Delete a product by its ID")
    dp.add_argument("--product-id", required=True)
    dp.add_argument("--yes", action="store_true", help="Skip confirmation")

    dc = subparsers.add_parser("delete-category", help="Delete a category by its ID")
    dc.add_argument("--category-id", required=True)
    dc.add_argument("--yes", action="store_true", help="Skip confirmation")
    return parser


def _require_login(session: AuthSession) -> None:
    session.restore()
    if not session.is_authenticated:
        console.print(show_status("Not logged in. Run `login` first.", False))
        sys.exit(1)


def run_command(args: argparse.Namespace, session: AuthSession) -> int:
    if args.command == "login":
        password = args.password or Prompt.ask("Password", password=True)
        result = session.login(args.username, password)
        if not result.success:
            console.print(show_status(result.message, False))
            return 1
        console.print(show_status(f"Logged in as {session.user.username}", True))
        return 0

    if args.command == "logout":
        session.logout()
        console.print(show_status("Logged out", True))
        return 0

    _require_login(session)

    if args.command == "whoami":
        console.print(f"{session.user.username} ({session.user.role})")
    elif args.command == "list-products":
        show_products(views.products_view(session.client, session.context()).load())
    elif args.command == "list-categories":
        show_categories(views.categories_view(session.client, session.context()).load())
    elif args.command == "stats":
        async_client = AsyncAdminClient(base_url=session.client.base_url, timeout=session.client.timeout)
        show_dashboard(asyncio.run(async_client.load_dashboard_stats(session.context())))
    elif args.command in ("delete-product", "delete-category"):
        if args.command == "delete-product":
            view = views.products_view(session.client, session.context())
            record_id = args.product_id
        else:
            view = views.categories_view(session.client, session.context())
            record_id = args.category_id
        try:
            done = view.delete(record_id, lambda: args.yes or Confirm.ask(f"Delete {view.label} {record_id}?"))
        except DeleteFailed as e:
            console.print(show_status(str(e), False))
            return 1
        console.print(show_status("Deleted" if done else "Cancelled", done))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.api_url:
        settings = Settings(api_url=args.api_url.rstrip("/"), timeout=settings.timeout,
                            token_file=settings.token_file, log_level=settings.log_level)
    setup_logging(settings.log_level)
    session = build_session(settings)

    if args.command in (None, "menu"):
        menu(session)
        return 0
    return run_command(args, session)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
    except StoreAdminError as e:
        console.print(f"\n\n[bold red]Error: {e}[/bold red]")
        sys.exit(1)
