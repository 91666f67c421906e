import logging

from flask import Flask
from config import Config
from extensions import db, login_manager, migrate, mail, csrf


def create_app(config_object=Config):
    # Create and configure the app
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)  # Initialize Flask-Migrate
    mail.init_app(app)
    csrf.init_app(app)

    # Import models here to avoid circular imports
    import models  # noqa: F401
    from models.user import User

    # Configure login manager
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Register blueprints
    from routes.burnout import burnout_bp
    from routes.breaks import breaks_bp
    from routes.velocity import velocity_bp

    # JSON endpoints are called by the dashboard and the webcam pipeline
    csrf.exempt(burnout_bp)
    csrf.exempt(breaks_bp)
    csrf.exempt(velocity_bp)

    app.register_blueprint(burnout_bp, url_prefix='/burnout')
    app.register_blueprint(breaks_bp, url_prefix='/breaks')
    app.register_blueprint(velocity_bp, url_prefix='/velocity')

    from utils.commands import register_commands
    register_commands(app)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
