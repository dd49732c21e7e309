"""
Flask CLI commands for database setup.

Commands:
- flask init-db: Create all tables
- flask seed-discounts: Install the default discount tiers
- flask commission-report: Sales and commission per representative
"""

import click
from decimal import Decimal
from app.database import db_session, create_all
from app.models import Discount

# (name, discount %, commission %) - each "*5" step compounds another 5% off
DEFAULT_DISCOUNTS = [
    ('2*5', '9.75', '7.00'),
    ('3*5', '14.26', '6.00'),
    ('4*5', '18.54', '5.00'),
    ('5*5', '22.62', '4.00'),
    ('6*5', '26.50', '3.00'),
    ('7*5', '30.17', '2.00'),
    ('8*5', '33.64', '2.00'),
    ('8*5+3', '35.65', '2.00'),
]


def seed_discounts(session):
    """Insert missing default discount tiers. Returns how many were created."""
    existing = {name for (name,) in session.query(Discount.name).all()}
    created = 0
    for name, percentage, commission in DEFAULT_DISCOUNTS:
        if name in existing:
            continue
        session.add(Discount(name=name, percentage=Decimal(percentage), commission=Decimal(commission)))
        created += 1
    session.commit()
    return created


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables."""
        create_all()
        click.echo(click.style('Tabelas criadas.', fg='green'))

    @app.cli.command('seed-discounts')
    def seed_discounts_command():
        """Install the default discount tiers (idempotent)."""
        try:
            created = seed_discounts(db_session)
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'Erro ao criar descontos: {e}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'{created} desconto(s) criado(s).', fg='green'))

    @app.cli.command('commission-report')
    @click.option('--representative-id', type=int, default=None, help='Only this representative')
    def commission_report_command(representative_id):
        """Print sales and commission per representative (confirmed orders)."""
        from app.services.stats_service import sales_by_representative
        from app.utils.formatters import money_br, num_br

        rows = sales_by_representative(db_session, representative_id)
        if not rows:
            click.echo('Nenhum representante encontrado.')
            return

        click.echo(click.style(f"Comissões - {app.config['BUSINESS_NAME']}", bold=True))
        for row in rows:
            click.echo(
                f"{row['name']}: {row['confirmed_orders']}/{row['total_orders']} pedidos confirmados, "
                f"{num_br(row['total_pieces'], 0)} peças, vendas {money_br(row['total_value'])}, "
                f"comissão {money_br(row['total_commission'])}"
            )
