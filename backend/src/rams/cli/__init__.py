"""CLI entry points for RAMS.

Provides command-line tools for:
- Database setup and demo data
- User administration
- Statistics and the PDF archive
"""

import click

from ..logging import setup_logging
from .admin import init_db_command, seed_command, user_group
from .reports import pdf_group, stats


@click.group()
@click.version_option(version="1.0.0", prog_name="rams")
def main():
    """RAMS - Report Approval Management System.

    Command-line tools for setting up the database, managing users
    and inspecting reports.
    """
    setup_logging()


main.add_command(init_db_command, name="init-db")
main.add_command(seed_command, name="seed")
main.add_command(user_group, name="user")
main.add_command(stats, name="stats")
main.add_command(pdf_group, name="pdf")


if __name__ == "__main__":
    main()
