from bloodbank import create_app, db
from bloodbank.models.user import User
import argparse
import getpass


def create_admin(name, email, password, phone=None):
    app = create_app()
    with app.app_context():
        email = email.strip().lower()
        user = User.query.filter_by(email=email).first()
        if user:
            if user.is_admin():
                print(f"Resetting password for admin: {user.email}")
            else:
                print(f"Promoting {user.role} account {user.email} to admin")
                user.role = 'admin'
        else:
            print(f"Creating admin account: {email}")
            user = User(name=name, email=email, role='admin', phone=phone, is_verified=True)
            db.session.add(user)

        user.set_password(password)
        db.session.commit()
        print("Admin account is ready!")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Create or reset an administrator account')
    parser.add_argument('email')
    parser.add_argument('--name', default='Administrator')
    parser.add_argument('--phone')
    args = parser.parse_args()

    password = getpass.getpass('Password: ')
    if len(password) < 6:
        parser.error('password must be at least 6 characters')
    create_admin(args.name, args.email, password, args.phone)
