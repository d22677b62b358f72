from bloodbank import create_app
import os

# Development defaults, overridden by the environment or a .env file
os.environ.setdefault('SECRET_KEY', 'dev_secret_key_for_testing')
os.environ.setdefault('DATABASE_URI', 'sqlite:///blood_bank.db')
os.environ.setdefault('SECURITY_PASSWORD_SALT', 'dev_password_salt')

# Create the Flask application
app = create_app()

if __name__ == '__main__':
    app.run(debug=True, port=int(os.getenv('PORT', 5000)))
