"""
Roster collaborators: import players from files, export squads.
"""

from cricauction.roster.importer import parse_roster, parse_csv_roster, parse_json_roster
from cricauction.roster.export import squad_document, squad_filename, squad_text

__all__ = [
    "parse_roster",
    "parse_csv_roster",
    "parse_json_roster",
    "squad_document",
    "squad_filename",
    "squad_text",
]
