"""
Utility functions for CryptoPulse
"""

import io
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

from rich.console import Console
from rich.panel import Panel

from cryptopulse.api import APIError
from cryptopulse.models import RiskCategory

logger = logging.getLogger("cryptopulse")

RISK_STYLES = {
    RiskCategory.VERY_LOW: "green",
    RiskCategory.LOW: "bright_green",
    RiskCategory.MEDIUM: "yellow",
    RiskCategory.HIGH: "dark_orange",
    RiskCategory.VERY_HIGH: "red",
}


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None):
    """Set up logging for the CLI"""
    log_level = logging.DEBUG if debug else logging.INFO

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s: %(message)s',
                                  datefmt='%Y-%m-%d %H:%M:%S')

    # Console only shows warnings unless debugging, tables go to stdout
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    console_handler.setFormatter(formatter)

    log_dir = log_dir or Path.home() / ".cryptopulse" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_dir / "cryptopulse.log")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    logging.getLogger("cryptopulse").setLevel(log_level)

    logger.debug("Logging initialized")


def format_output(data: Union[Dict[str, Any], List[Dict[str, Any]]], format_type: str,
                  output_path: Optional[str], console: Console):
    """Format data as JSON or CSV and print it or write it to a file"""
    if format_type == 'csv':
        rows = data if isinstance(data, list) else [data]
        formatted_data = _rows_to_csv(rows)
    else:
        formatted_data = json.dumps(data, indent=2, default=str)

    if output_path:
        try:
            with open(output_path, 'w') as f:
                f.write(formatted_data)
            console.print(f"[green]Output saved to {output_path}[/green]")
        except OSError as e:
            console.print(f"[red]Error saving output to {output_path}: {str(e)}[/red]")
    else:
        if format_type == 'csv':
            console.print(formatted_data, markup=False, highlight=False, soft_wrap=True)
        else:
            console.print_json(formatted_data)


def _rows_to_csv(rows: List[Dict[str, Any]]) -> str:
    """Convert a list of records to a CSV string, flattening nested values"""
    output = io.StringIO()
    if not rows:
        return ""

    flat_rows = [flatten_dict(row) for row in rows]
    fieldnames: List[str] = []
    for row in flat_rows:
        for key in row:
            if key not in fieldnames:
                fieldnames.append(key)

    writer = csv.DictWriter(output, fieldnames=fieldnames)
    writer.writeheader()
    for row in flat_rows:
        writer.writerow({k: ";".join(map(str, v)) if isinstance(v, list) else v
                         for k, v in row.items()})
    return output.getvalue()


def handle_api_error(error: APIError, console: Console):
    """Handle API errors"""
    console.print(Panel(f"[bold red]Error: {str(error)}[/bold red]", title="API Error", expand=False))
    logger.error(f"API error: {str(error)}")


def flatten_dict(d: Dict[str, Any], parent_key: str = '', sep: str = '_') -> Dict[str, Any]:
    """Flatten a nested dictionary"""
    items = []
    for k, v in d.items():
        new_key = f"{parent_key}{sep}{k}" if parent_key else k
        if isinstance(v, dict):
            items.extend(flatten_dict(v, new_key, sep=sep).items())
        else:
            items.append((new_key, v))
    return dict(items)


def truncate_string(s: str, max_length: int = 50) -> str:
    """Truncate a string to a maximum length"""
    if len(s) <= max_length:
        return s
    return s[:max_length - 3] + "..."


def format_number(value: Optional[float], decimals: int = 2) -> str:
    """Format a number, abbreviating thousands, millions and billions"""
    if value is None:
        return "-"
    magnitude = abs(value)
    if magnitude >= 1_000_000_000:
        return f"{value / 1_000_000_000:.1f}B"
    if magnitude >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if magnitude >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:,.{decimals}f}"


def format_currency(value: Optional[float], decimals: int = 2, currency: str = "$") -> str:
    if value is None:
        return "-"
    if 0 < value < 0.000001:
        return f"{currency}~0"
    if 0 < value < 1:
        decimals = max(decimals, 4)
    return f"{currency}{format_number(value, decimals)}"


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "-"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def risk_style(category: RiskCategory) -> str:
    return RISK_STYLES.get(category, "white")
