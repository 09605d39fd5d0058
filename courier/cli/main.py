"""Main CLI application using Cyclopts.

Commands other than ``server`` run the domain services in process against
the configured database.
"""

import cyclopts

from courier.cli.commands import config, deposits, server, submissions

app = cyclopts.App(
    name="courier",
    help="Courier - deliver submissions to custodial repositories",
)

app.command(server.app, name="server")
app.command(config.app, name="config")
app.command(submissions.app, name="submissions")
app.command(deposits.app, name="deposits")


if __name__ == "__main__":
    app()
