import random
import click
import httpx
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box
from config.settings import settings
from core.asset_resolver import build_asset_table, resolve_tolerant
from core.cia_classifier import parse_tolerant, render
from core.exceptions import InvalidInput
from core.risk_matrix import (
    DEFAULT_MATRIX, evaluate, normalize_or_default, numeric_score, rating_to_style_hint,
)
from models.risk import ConsequenceLevel, LikelihoodLevel

console = Console()

# style hints → rich styles
HINT_STYLES = {
    "green": "bold green", "yellow": "bold yellow", "orange": "bold orange3",
    "red": "bold red", "blue": "bold blue",
}


def _rating_markup(rating) -> str:
    style = HINT_STYLES[rating_to_style_hint(rating)]
    return f"[{style}]{rating.value}[/{style}]"


def banner():
    console.print(f"""
[bold blue]╔══════════════════════════════════════════════╗
║   {settings.APP_NAME}  v{settings.VERSION}                     ║
║   Risk Register Toolkit                      ║
╚══════════════════════════════════════════════╝[/bold blue]
""")
    mode = "[yellow]MOCK[/yellow]" if settings.MOCK_MODE else "[green]LIVE[/green]"
    console.print(
        f"  Mode: {mode}  |  "
        f"Organization: [bold]{settings.ORGANIZATION_NAME}[/bold]\n"
    )
    for w in settings.validate():
        console.print(f"  [yellow]⚠  {w}[/yellow]")
    console.print()


@click.group()
@click.option("--quiet", "-q", is_flag=True, default=False, help="Skip the banner")
def cli(quiet):
    """GRC Risk Core — risk rating and register review CLI"""
    if not quiet:
        banner()


@cli.command("rate")
@click.argument("likelihood")
@click.argument("consequence")
@click.option("--lenient", is_flag=True, default=False,
              help="Treat unknown values as the lowest band instead of failing")
def rate(likelihood, consequence, lenient):
    """Rate a LIKELIHOOD x CONSEQUENCE pair against the risk matrix."""
    if lenient:
        likelihood = normalize_or_default(likelihood, LikelihoodLevel)
        consequence = normalize_or_default(consequence, ConsequenceLevel)
    try:
        rating = evaluate(likelihood, consequence)
    except InvalidInput as e:
        console.print(f"[red]✘ {e}[/red]")
        raise SystemExit(2)

    console.print(Panel(
        f"[bold]Likelihood:[/bold] {getattr(likelihood, 'value', likelihood)}\n"
        f"[bold]Consequence:[/bold] {getattr(consequence, 'value', consequence)}\n"
        f"[bold]Rating:[/bold] {_rating_markup(rating)}\n"
        f"[dim]Heat-map score (not a rating): {numeric_score(likelihood, consequence)}[/dim]",
        title="[bold blue]Risk Rating[/bold blue]"
    ))


@cli.command("matrix")
def show_matrix():
    """Print the likelihood x consequence matrix."""
    tbl = Table(box=box.ROUNDED, header_style="bold cyan")
    tbl.add_column("Likelihood \\ Consequence", style="bold")
    for consequence in ConsequenceLevel:
        tbl.add_column(consequence.value, justify="center")
    for likelihood in reversed(list(LikelihoodLevel)):
        tbl.add_row(likelihood.value, *[
            _rating_markup(DEFAULT_MATRIX.evaluate(likelihood, c)) for c in ConsequenceLevel
        ])
    console.print(tbl)


@cli.command("cia")
@click.argument("impact")
def classify_cia(impact):
    """Parse an IMPACT string into CIA components."""
    result = parse_tolerant(impact)
    badges = render(result.components)
    if badges:
        console.print("  " + "  ".join(
            f"[{HINT_STYLES[b.style_hint]}]{b.short}[/{HINT_STYLES[b.style_hint]}] {b.label}"
            for b in badges
        ))
    else:
        console.print("  [dim]Not specified[/dim]")
    if result.unrecognized:
        console.print(f"  [yellow]⚠  Ignored: {', '.join(result.unrecognized)}[/yellow]")


@cli.command("assets")
@click.argument("ids")
def resolve_assets(ids):
    """Resolve asset IDS (comma, semicolon or pipe separated) to names."""
    from integrations.grc_client import GRCClient
    try:
        table = build_asset_table(GRCClient().get_information_assets())
    except httpx.HTTPError as e:
        console.print(f"\n[red]✘ Could not load the asset inventory:[/red] {e}\n")
        raise SystemExit(1)

    result = resolve_tolerant(ids, table)
    console.print(f"  {', '.join(result.names) or '[dim]none[/dim]'}")
    if result.unresolved:
        console.print(f"  [yellow]⚠  Not in inventory: {', '.join(result.unresolved)}[/yellow]")


@cli.command("analyze")
@click.option("--no-pdf", is_flag=True, default=False, help="Skip PDF generation")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show finding details")
@click.option("--lenient", is_flag=True, default=False,
              help="Rate risks with unknown values at the lowest band instead of skipping them")
def run_analysis(no_pdf, verbose, lenient):
    """Review the risk register for rating consistency."""
    from services.risk_service import RegisterService
    from reporting.pdf_report import PDFReportGenerator

    try:
        with Progress(SpinnerColumn(), TextColumn("{task.description}"), console=console) as p:
            t = p.add_task("Fetching risk register...", total=None)
            service = RegisterService(lenient=lenient)
            p.update(t, description="Checking ratings...")
            summary = service.run()
            p.update(t, description="Review complete!")
    except (ConnectionError, httpx.HTTPError) as e:
        console.print(f"\n[red]✘ Register review failed:[/red] {e}\n")
        raise SystemExit(1)

    counts = "  ".join(
        f"{_rating_markup(r)}: {n}" for r, n in reversed(list(summary.rating_counts.items()))
    )
    console.print(Panel(
        f"[bold]Organization:[/bold] {summary.organization_name}\n"
        f"[bold]Risks:[/bold] {summary.rated_risks} rated of {summary.total_risks}\n"
        f"[bold]Ratings:[/bold] {counts}\n"
        f"[bold]Findings:[/bold] [red]{len(summary.high_findings)}[/red] high  "
        f"[bold]Total:[/bold] {len(summary.findings)}",
        title="[bold blue]Register Summary[/bold blue]"
    ))

    if summary.findings:
        console.print(f"\n[bold]Findings ({len(summary.findings)})[/bold]\n")
        tbl = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan")
        tbl.add_column("ID", width=6)
        tbl.add_column("SEV", width=10)
        tbl.add_column("Category", width=20)
        tbl.add_column("Title")
        sev_colors = {
            "critical": "bold red", "high": "bold orange3",
            "medium": "bold yellow", "low": "bold green",
        }
        for f in summary.findings:
            sc = sev_colors.get(f.severity.value, "")
            tbl.add_row(f.id, f"[{sc}]{f.severity.upper()}[/{sc}]",
                        f.category.value, f.title)
        console.print(tbl)

        if verbose:
            console.print("\n[bold]Finding Details[/bold]\n")
            border_colors = {
                "critical": "red", "high": "orange3",
                "medium": "yellow", "low": "green",
            }
            for f in summary.findings:
                bc = border_colors.get(f.severity.value, "white")
                console.print(Panel(
                    f"[bold]Description:[/bold] {f.description}\n\n"
                    f"[bold]Evidence:[/bold] {f.evidence or 'N/A'}\n\n"
                    f"[bold]Recommendation:[/bold] {f.recommendation}",
                    title=f"[bold]{f.id} — {f.title}[/bold]",
                    border_style=bc,
                ))

    if not no_pdf:
        console.print("\n[bold]Generating PDF report...[/bold]")
        try:
            pdf_path = PDFReportGenerator(summary, asset_table=service.asset_table).generate()
            console.print(f"\n[green]✔ Report saved:[/green] {pdf_path}\n")
        except OSError as e:
            console.print(f"\n[red]✘ PDF generation failed:[/red] {e}\n")


@cli.command("migrate")
@click.option("--apply", "apply_changes", is_flag=True, default=False,
              help="Write migrated records back through the register API")
def migrate(apply_changes):
    """Move risks off the retired Low/Medium/High scale and re-rate them."""
    from integrations.grc_client import GRCClient
    from services.risk_service import migrate_legacy_document

    client = GRCClient()
    tbl = Table(box=box.SIMPLE_HEAVY, header_style="bold cyan")
    tbl.add_column("Risk ID")
    tbl.add_column("Before")
    tbl.add_column("After")
    changed, failed = [], []
    for doc in client.get_risks():
        try:
            migrated = migrate_legacy_document(doc)
        except InvalidInput as e:
            failed.append((doc.get("riskId"), str(e)))
            continue
        if migrated == doc:
            continue
        changed.append(migrated)
        tbl.add_row(
            str(doc.get("riskId")),
            f"{doc.get('likelihoodRating')} × {doc.get('consequenceRating')} = {doc.get('riskRating')}",
            f"{migrated['likelihoodRating']} × {migrated['consequenceRating']} = {migrated['riskRating']}",
        )

    if changed:
        console.print(tbl)
    console.print(f"  {len(changed)} record(s) to update, {len(failed)} not migratable.")
    for rid, reason in failed:
        console.print(f"  [yellow]⚠  {rid}: {reason}[/yellow]")
    if apply_changes and changed:
        try:
            for record in changed:
                client.update_risk(record["riskId"], record)
        except httpx.HTTPError as e:
            console.print(f"\n[red]✘ Update failed:[/red] {e}\n")
            raise SystemExit(1)
        console.print(f"\n[green]✔ {len(changed)} record(s) written.[/green]\n")


@cli.command("seed")
@click.option("--count", "-n", type=int, default=None, help="Number of risks to generate")
@click.option("--seed", "seed_value", type=int, default=None, help="Random seed for reproducible data")
def seed_register(count, seed_value):
    """Insert internally consistent sample risks."""
    from integrations.grc_client import GRCClient
    from services.seeding import seed

    count = settings.SEED_COUNT if count is None else count
    try:
        risks = seed(GRCClient(), count, random.Random(seed_value))
    except httpx.HTTPError as e:
        console.print(f"\n[red]✘ Seeding failed:[/red] {e}\n")
        raise SystemExit(1)
    console.print(f"\n[green]✔ Inserted {len(risks)} risk records.[/green]\n")


@cli.command("status")
def check_status():
    """Check configuration and connectivity status."""
    tbl = Table(box=box.ROUNDED, header_style="bold cyan")
    tbl.add_column("Component", style="bold")
    tbl.add_column("Status")
    tbl.add_column("Details")

    if settings.MOCK_MODE:
        tbl.add_row("Register API", "[yellow]MOCK[/yellow]", "Simulation mode active")
    elif settings.is_api_configured():
        tbl.add_row("Register API", "[green]CONFIGURED[/green]", settings.GRC_API_URL)
    else:
        tbl.add_row("Register API", "[red]NOT CONFIGURED[/red]",
                    "Set GRC_API_TOKEN in .env")

    tbl.add_row("Report Output", "[green]OK[/green]", str(settings.REPORT_OUTPUT_DIR))
    tbl.add_row("Log File", "[green]OK[/green]", settings.LOG_FILE)

    mode_label = "MOCK (safe)" if settings.MOCK_MODE else "LIVE (real API)"
    mode_color = "yellow" if settings.MOCK_MODE else "green"
    tbl.add_row("Current Mode", f"[{mode_color}]{mode_label}[/{mode_color}]", "")
    console.print(tbl)
    console.print()


@cli.command("connect")
def test_connection():
    """Test the register API connection."""
    if settings.MOCK_MODE:
        console.print("[yellow]⚠  Currently in MOCK MODE.[/yellow]")
        console.print("Set [bold]MOCK_MODE=false[/bold] in your .env to test a real connection.\n")
        return

    from integrations.grc_client import GRCClient
    console.print("\n[bold]Testing register API connection...[/bold]\n")
    try:
        client = GRCClient()
        client.verify_connection()
        assets = client.get_information_assets()
        risks = client.get_risks()
    except (ConnectionError, httpx.HTTPError) as e:
        console.print(f"\n[red]✘ Connection failed:[/red] {e}\n")
        raise SystemExit(1)

    tbl = Table(box=box.ROUNDED, header_style="bold cyan")
    tbl.add_column("Resource")
    tbl.add_column("Count", justify="right")
    tbl.add_row("Information assets", str(len(assets)))
    tbl.add_row("Risks", str(len(risks)))
    console.print(tbl)
    console.print("\n[green]✔ Connection successful.[/green]\n")
