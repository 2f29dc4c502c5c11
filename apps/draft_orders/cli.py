import json

import click


def register_cli(app):
    @app.cli.command("tiers.show")
    def tiers_show():
        """Print the tier table currently in effect."""
        cfg = app.config["TIER_PROVIDER"].get_tier_config()
        click.echo(f"prioritize_tags: {cfg.prioritize_tags}")
        for t in cfg.describe():
            click.echo(f"  {t['name']:<16} tag={t['tag']:<16} {t['discount_percent']:>3}%  >= {t['spend_threshold']}")

    @app.cli.command("tiers.resolve")
    @click.argument("customer_id")
    def tiers_resolve(customer_id):
        """Resolve the tier for one customer (numeric id or GID)."""
        resolved = app.config["TIER_RESOLVER"].resolve_tier(customer_id)
        click.echo(json.dumps({
            "customer_id": customer_id,
            "tier": resolved.tier_name,
            "discount_percent": resolved.discount_percent,
        }))

    @app.cli.command("tiers.refresh")
    def tiers_refresh():
        """Drop the cached tier config and reload it from the theme."""
        provider = app.config["TIER_PROVIDER"]
        provider.invalidate()
        cfg = provider.get_tier_config()
        click.echo(f"Loaded {len(cfg.tiers)} tiers (prioritize_tags={cfg.prioritize_tags})")
