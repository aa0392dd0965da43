"""
Utility functions for the NestWise sheet nesting engine: logging setup,
display formatting and tabular views of optimization results.
"""

import logging

import pandas as pd

from config import LOG_FORMAT
from data_models import OptimizationResult


def setup_logging(log_level: str = "INFO") -> None:
    """
    Set up logging configuration for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
        ]
    )

    # Set specific logger levels
    logging.getLogger('numpy').setLevel(logging.WARNING)


def format_currency(amount: float, symbol: str = "") -> str:
    """
    Format currency amount for display.

    Args:
        amount: Amount to format
        symbol: Currency symbol to prefix

    Returns:
        Formatted currency string
    """
    return f"{symbol}{amount:,.2f}"


def format_area(area_mm2: float) -> str:
    """
    Format area for display with appropriate units.

    Args:
        area_mm2: Area in square millimeters

    Returns:
        Formatted area string
    """
    if area_mm2 >= 1_000_000:
        return f"{area_mm2 / 1_000_000:.2f} m²"
    elif area_mm2 >= 100:
        return f"{area_mm2 / 100:.1f} cm²"
    else:
        return f"{area_mm2:.0f} mm²"


def format_percentage(value: float) -> str:
    """
    Format percentage for display.

    Args:
        value: Percentage value (0-100)

    Returns:
        Formatted percentage string
    """
    return f"{value:.1f}%"


def format_weight(weight_kg: float) -> str:
    if weight_kg >= 1000:
        return f"{weight_kg / 1000:.2f} t"
    return f"{weight_kg:.2f} kg"


PLACEMENT_COLUMNS = ['Sheet ID', 'Tag', 'Source Index', 'X', 'Y', 'Width', 'Height', 'Rotation', 'Area']
SHEET_SUMMARY_COLUMNS = ['Sheet ID', 'Dimensions', 'Pieces', 'Utilized Area', 'Waste Area',
                         'Efficiency', 'Weight']


def placements_to_dataframe(result: OptimizationResult) -> pd.DataFrame:
    """
    One row per placed piece across all sheets.

    Args:
        result: Optimization result

    Returns:
        DataFrame with PLACEMENT_COLUMNS, empty when nothing was placed
    """
    rows = []
    for sheet in result.sheets:
        for placed in sheet.placed_pieces:
            rows.append({
                'Sheet ID': sheet.id,
                'Tag': placed.tag,
                'Source Index': placed.source_index,
                'X': placed.x,
                'Y': placed.y,
                'Width': placed.width,
                'Height': placed.height,
                'Rotation': placed.rotation,
                'Area': placed.area
            })
    return pd.DataFrame(rows, columns=PLACEMENT_COLUMNS)


def sheet_summary_dataframe(result: OptimizationResult) -> pd.DataFrame:
    """
    Per-sheet summary table with raw numbers (mm², %, kg).

    Args:
        result: Optimization result

    Returns:
        DataFrame with SHEET_SUMMARY_COLUMNS, one row per sheet
    """
    sheet_data = []
    for sheet in result.sheets:
        sheet_data.append({
            'Sheet ID': sheet.id,
            'Dimensions': f"{sheet.width:g}×{sheet.height:g}mm",
            'Pieces': len(sheet.placed_pieces),
            'Utilized Area': sheet.get_utilized_area(),
            'Waste Area': sheet.get_waste_area(),
            'Efficiency': sheet.get_efficiency(),
            'Weight': sheet.get_weight(result.thickness, result.density)
        })
    return pd.DataFrame(sheet_data, columns=SHEET_SUMMARY_COLUMNS)


def format_result_summary(result: OptimizationResult) -> str:
    """Human-readable one-paragraph summary of a run."""
    lines = [
        f"Algorithm: {result.algorithm}",
        f"Sheets used: {result.total_sheets}",
        f"Pieces placed: {result.placed_count}/{result.placed_count + result.unplaced_count}",
        f"Average efficiency: {format_percentage(result.average_efficiency)}",
        f"Total waste: {format_area(result.total_waste_area)}",
        f"Total weight: {format_weight(result.total_weight)}",
        f"Material cost: {format_currency(result.material_cost)}",
    ]
    if result.material:
        lines.insert(1, f"Material: {result.material}")
    return "\n".join(lines)
