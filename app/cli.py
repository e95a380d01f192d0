"""Flask CLI commands for admin operations."""
import click
from flask import current_app


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables and seed the default vocabularies."""
        from app.extensions import db
        from app.services import catalog_service

        db.create_all()
        added = catalog_service.seed_defaults()
        click.echo(f"Database initialized ({added} catalog entries added).")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Seed demo products (idempotent)."""
        from app.models.product import Product
        from app.services import product_service

        # Only seed if no products exist yet
        if Product.query.first():
            click.echo("Products already exist, skipping demo seed.")
            return

        demo_products = [
            ("Classic Crew Tee", "T-Shirts", 20, ["S", "M", "L"], ["Black", "White"], 12),
            ("Heavyweight Hoodie", "Hoodies", 55, ["M", "L", "XL"], ["Gray", "Navy"], 6),
            ("Cargo Shorts", "Shorts", 35, ["S", "M"], ["Beige"], 8),
        ]
        for name, category, price, sizes, colors, stock in demo_products:
            variants = [
                {"size": s, "color": c, "stock": stock} for s in sizes for c in colors
            ]
            product_service.create_product(
                {
                    "name": name,
                    "description": f"{name} from the demo catalog.",
                    "category": category,
                    "price": float(price),
                    "original_price": float(price),
                    "tags": ["demo"],
                    "variants": variants,
                },
                user_id="cli",
            )
        click.echo(f"Seeded {len(demo_products)} demo products.")

    @app.cli.command("create-product")
    @click.option("--name", required=True)
    @click.option("--price", required=True, type=float)
    @click.option("--category", required=True)
    @click.option("--description", required=True)
    @click.option("--tags", default="")
    def create_product(name, price, category, description, tags):
        """Create a product without variants (for testing)."""
        from app.services import product_service
        from app.services.errors import SaveError

        try:
            product = product_service.create_product(
                {
                    "name": name,
                    "description": description,
                    "category": category,
                    "price": price,
                    "original_price": price,
                    "tags": [t.strip() for t in tags.split(",") if t.strip()],
                },
                user_id="cli",
            )
        except SaveError as e:
            raise click.ClickException("; ".join(e.errors) or e.message)
        click.echo(f"Created: {product.slug} ({product.name}, {price:.2f})")

    @app.cli.command("stats")
    def stats():
        """Show inventory statistics."""
        from app.services.product_service import get_product_analytics

        s = get_product_analytics()
        click.echo(f"{current_app.config['BUSINESS_NAME']} inventory")
        click.echo(f"Total products: {s['total_products']}")
        click.echo(f"Total stock: {s['total_stock']}")
        click.echo(f"Out of stock: {s['out_of_stock']}")
        for status, count in sorted(s["by_status"].items()):
            click.echo(f"  {status}: {count}")
