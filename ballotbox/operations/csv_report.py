# ballotbox/operations/csv_report.py

import csv
import io
from typing import Dict


def _pct(value):
    return f"{value}%"


def export_csv_summary(stats: Dict) -> str:
    """Render election statistics as a human-readable CSV summary."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator='\n')

    writer.writerow(['Data', 'Count'])
    writer.writerow(['Total Voters', stats['total_voters']])
    writer.writerow(['Voted Voters', stats['voted_voters']])
    writer.writerow(['Not Voted', stats['not_voted_voters']])
    writer.writerow(['Vote Percentage', _pct(stats['vote_percentage'])])
    writer.writerow(['Total Candidates', stats['total_candidates']])
    writer.writerow([])

    writer.writerow(['Candidate Results'])
    writer.writerow(['Number', 'Name', 'Votes', 'Percentage'])
    for candidate in stats['candidates']:
        writer.writerow([candidate['number'], candidate['name'], candidate['votes'],
                         _pct(candidate['percentage'])])
    writer.writerow([])

    writer.writerow(['Votes by Class'])
    writer.writerow(['Class', 'Total', 'Voted', 'Percentage'])
    for class_name, data in stats['votes_by_class'].items():
        percentage = round(data['voted'] / data['total'] * 100, 1) if data['total'] else 0.0
        writer.writerow([class_name, data['total'], data['voted'], _pct(percentage)])

    return buf.getvalue()
