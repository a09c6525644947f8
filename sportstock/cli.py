import click

from sportstock.extensions import db
from sportstock.models import Equipment, EquipmentCategory, Profile, User, ROLES


def register_commands(app):
    @app.cli.command('seed-db')
    def seed_db_command():
        """Add starter categories and equipment."""
        if EquipmentCategory.query.first() is not None:
            click.echo('Database already has categories; nothing to do.')
            return

        balls = EquipmentCategory(name='Balls')
        gymnastics = EquipmentCategory(name='Gymnastics')
        athletics = EquipmentCategory(name='Athletics')
        db.session.add_all([balls, gymnastics, athletics])
        db.session.flush()

        db.session.add_all([
            Equipment(name='Football ball', quantity=12, status='in_use', category_id=balls.id),
            Equipment(name='Basketball ball', quantity=10, status='in_use', category_id=balls.id),
            Equipment(name='Volleyball ball', quantity=4, status='broken', category_id=balls.id),
            Equipment(name='Gym mat', quantity=8, status='in_use', category_id=gymnastics.id),
            Equipment(name='Jump rope', quantity=20, status='new', category_id=athletics.id),
            Equipment(name='Cones', quantity=30, status='in_use', category_id=athletics.id),
        ])
        db.session.commit()
        click.echo('Database seeded with categories and equipment.')

    @app.cli.command('sweep-requests')
    def sweep_requests_command():
        """Delete resolved requests older than the retention window."""
        from sportstock.services.sweeper import sweep_all
        deleted = sweep_all()
        click.echo(f'Deleted {deleted} resolved request(s).')

    @app.cli.command('set-role')
    @click.argument('email')
    @click.argument('role', type=click.Choice(ROLES))
    def set_role_command(email, role):
        """Give the account EMAIL the role ROLE."""
        user = User.query.filter_by(email=email).first()
        if user is None:
            raise click.ClickException(f'No account with email {email}.')
        profile = db.session.get(Profile, user.id)
        if profile is None:
            profile = Profile(id=user.id)
            db.session.add(profile)
        profile.role = role
        db.session.commit()
        click.echo(f'{email} is now {role}.')

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        db.create_all()
        click.echo('Tables created.')
