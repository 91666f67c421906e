import click


def register_commands(app):
    """Register the periodic maintenance commands with the Flask CLI."""

    @app.cli.command('burnout-check')
    def burnout_check():
        """Compute today's burnout scores and send due alerts."""
        from utils.notifications import schedule_burnout_checks

        notified = schedule_burnout_checks()
        click.echo(f"Alerts due for {len(notified)} users")

    @app.cli.command('cleanup-breaks')
    @click.option('--max-age', default=None, type=int,
                  help='Close breaks open longer than this many minutes.')
    def cleanup_breaks(max_age):
        """Close breaks whose end event never arrived."""
        from services.break_tracker import cleanup_orphaned_breaks

        result = cleanup_orphaned_breaks(max_age_minutes=max_age)
        click.echo(f"Closed {result['cleaned_count']} of {result['total_orphaned']} orphaned breaks")

    return app
