import click
from flask import current_app


def register_cli(app):
    @app.cli.command("prune-post-refs")
    def prune_post_refs():
        """Remove post ids that no longer resolve from every user's list."""
        removed = current_app.extensions["feed_service"].prune_dangling_post_ids()
        click.echo(f"Removed {removed} dangling post reference(s).")
