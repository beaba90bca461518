"""
cli/main.py
===========
Interface de linha de comando do vidfinder.

Exemplos de uso:
  vidfinder https://exemplo.com/video
  vidfinder https://exemplo.com/live --browser firefox --stealth --must-contain m3u8
  vidfinder https://a.com/v https://b.com/v --concurrency 2 -o streams.m3u
  vidfinder --install-browsers --browser webkit
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional, Tuple

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from vidfinder.core.blocklist import DomainBlocklist
from vidfinder.core.engines import ENGINES
from vidfinder.core.extractor import VideoExtractor
from vidfinder.core.install import ensure_playwright_browsers
from vidfinder.core.log import configure_logging
from vidfinder.core.models import (
    DEFAULT_LAUNCH_TIMEOUT_MS,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_OBSERVATION_WINDOW_MS,
    ExtractionRequest,
    ExtractionResult,
    Failure,
    Success,
    split_terms,
)

console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vidfinder",
        description="vidfinder: extrai a URL direta de vídeo/stream de páginas web.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Exemplos de uso:", 1)[-1],
    )
    parser.add_argument("urls", nargs="*", help="Uma ou mais URLs de páginas com vídeo.")

    browser_group = parser.add_argument_group("Opções de Navegador")
    browser_group.add_argument(
        "--browser",
        choices=sorted(ENGINES),
        default="chromium",
        help="Navegador a ser usado (padrão: chromium).",
    )
    browser_group.add_argument("--headless", action="store_true", default=True,
                               help="Executa o navegador em modo headless (padrão).")
    browser_group.add_argument("--no-headless", action="store_false", dest="headless",
                               help="Executa o navegador com interface gráfica.")
    browser_group.add_argument("--stealth", action="store_true", default=False,
                               help="Ativa a evasão de detecção de automação.")
    browser_group.add_argument("--proxy", metavar="HOST:PORTA", help="Proxy para o navegador.")
    browser_group.add_argument("--user-agent", default=None,
                               help='User agent fixo (padrão: aleatório; "random" também sorteia).')
    browser_group.add_argument("--strict-tls", action="store_false", dest="ignore_certificate_errors",
                               default=True, help="Valida os certificados TLS das páginas.")
    browser_group.add_argument("--install-browsers", action="store_true", default=False,
                               help="Instala o navegador escolhido em --browser e sai.")

    filter_group = parser.add_argument_group("Filtros")
    filter_group.add_argument("--must-contain", default="", metavar="A,B",
                              help="A URL precisa conter ao menos um destes termos.")
    filter_group.add_argument("--not-contain", default="", metavar="A,B",
                              help="A URL não pode conter nenhum destes termos.")
    filter_group.add_argument("--adblock", action="store_true", default=False,
                              help="Bloqueia domínios de publicidade (requer --blocklist).")
    filter_group.add_argument("--blocklist", metavar="ARQUIVO",
                              help="Arquivo de filtros no formato EasyList.")

    exec_group = parser.add_argument_group("Opções de Execução")
    exec_group.add_argument("--timeout", type=int, default=DEFAULT_NAVIGATION_TIMEOUT_MS,
                            help=f"Tempo limite da navegação em ms (padrão: {DEFAULT_NAVIGATION_TIMEOUT_MS}).")
    exec_group.add_argument("--window", type=int, default=DEFAULT_OBSERVATION_WINDOW_MS,
                            help=f"Janela de observação da rede em ms (padrão: {DEFAULT_OBSERVATION_WINDOW_MS}).")
    exec_group.add_argument("--launch-timeout", type=int, default=DEFAULT_LAUNCH_TIMEOUT_MS,
                            help="Tempo limite para o navegador subir, em ms.")
    exec_group.add_argument("--selectors", default="", metavar="A,B",
                            help="Seletores CSS a aguardar depois da navegação.")
    exec_group.add_argument("--frame", action="store_true", default=False,
                            help="Segue o primeiro iframe (player embutido) da página.")
    exec_group.add_argument("--brute-click", action="store_true", default=False,
                            help="Clica no botão de play e no centro da página.")
    exec_group.add_argument("--concurrency", type=int, default=1,
                            help="Quantidade de extrações simultâneas (padrão: 1).")
    exec_group.add_argument("-v", "--verbose", action="store_true", default=False,
                            help="Mostra logs de depuração.")

    output_group = parser.add_argument_group("Saída")
    output_group.add_argument("--output", "-o", help="Caminho para salvar um arquivo .m3u com os resultados.")
    output_group.add_argument("--json", action="store_true", default=False,
                              help="Imprime os resultados em JSON no stdout.")
    return parser


def build_request(url: str, args: argparse.Namespace) -> ExtractionRequest:
    return ExtractionRequest(
        target_url=url,
        navigation_timeout_ms=args.timeout,
        required_selectors=split_terms(args.selectors),
        headless=args.headless,
        stealth=args.stealth,
        allow_frame_navigation=args.frame,
        proxy=args.proxy,
        enable_adblock=args.adblock,
        must_contain=set(split_terms(args.must_contain)),
        must_not_contain=set(split_terms(args.not_contain)),
        user_agent=args.user_agent,
        browser_engine=args.browser,
        brute_click=args.brute_click,
        ignore_certificate_errors=args.ignore_certificate_errors,
        observation_window_ms=args.window,
        launch_timeout_ms=args.launch_timeout,
    )


def write_playlist(path: str, results: List[Tuple[str, ExtractionResult]]) -> int:
    """Grava as URLs encontradas em um arquivo .m3u. Retorna quantas foram gravadas."""
    written = 0
    with open(path, "w", encoding="utf-8") as f:
        f.write("#EXTM3U\n")
        for source_url, result in results:
            if isinstance(result, Success):
                f.write(f'#EXTINF:-1 group-title="VIDFINDER", {source_url}\n')
                f.write(f"{result.video_url}\n")
                written += 1
    return written


def print_results(results: List[Tuple[str, ExtractionResult]]) -> None:
    table = Table(title="Resultados da Extração")
    table.add_column("Página", style="cyan", overflow="fold")
    table.add_column("Status")
    table.add_column("URL / Erro", overflow="fold")
    for source_url, result in results:
        if isinstance(result, Success):
            table.add_row(source_url, "[green]encontrado[/]", result.video_url)
        elif isinstance(result, Failure):
            table.add_row(source_url, f"[red]{result.kind.value}[/]", result.message)
        else:
            table.add_row(source_url, "[yellow]não encontrado[/]", "-")
    console.print(table)


async def run(args: argparse.Namespace) -> int:
    blocklist: Optional[DomainBlocklist] = None
    if args.blocklist:
        blocklist = DomainBlocklist.from_file(args.blocklist)
    elif args.adblock:
        console.print("[bold yellow]Aviso:[/] --adblock sem --blocklist não bloqueia nada.")

    extractor = VideoExtractor(blocklist=blocklist)
    requests = [build_request(url, args) for url in args.urls]

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"[cyan]Processando {len(requests)} URL(s)...", total=None)
        results = await extractor.extract_many(requests, concurrency=args.concurrency)

    paired = list(zip(args.urls, results))

    if args.json:
        payload = [dict(result.to_dict(), sourceUrl=url) for url, result in paired]
        print(json.dumps(payload, indent=2))
    else:
        print_results(paired)

    if args.output:
        written = write_playlist(args.output, paired)
        console.print(f"\n[bold green]✓[/] Arquivo '[bold cyan]{args.output}[/]' gerado com {written} stream(s).")

    return 0 if all(r.ok for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, console=console)

    if args.install_browsers:
        return 0 if ensure_playwright_browsers(args.browser) else 1

    if not args.urls:
        parser.print_help()
        console.print("\n[bold red]Erro:[/] Forneça ao menos uma URL ou use --install-browsers.")
        return 2

    return asyncio.run(run(args))


def main_entry():
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
