from sportstock import create_app, db
from sportstock.models import User, Profile, Equipment, EquipmentCategory, Request, PriceHistory, EventLog

app = create_app()

@app.shell_context_processor
def make_shell_context():
    return {
        'db': db,
        'User': User,
        'Profile': Profile,
        'Equipment': Equipment,
        'EquipmentCategory': EquipmentCategory,
        'Request': Request,
        'PriceHistory': PriceHistory,
        'EventLog': EventLog,
    }


if __name__ == '__main__':
    app.run(debug=True)
