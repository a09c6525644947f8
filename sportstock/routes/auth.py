from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_user, logout_user, current_user
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SubmitField, BooleanField
from wtforms.validators import DataRequired, Email, EqualTo, Length

from sportstock.extensions import db
from sportstock.models.user import User
from sportstock.services.session_service import BLOCKED_MESSAGE, get_session_context

auth = Blueprint('auth', __name__)


# --- Forms ---
class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
    remember = BooleanField('Remember me')
    submit = SubmitField('Sign in')


class RegistrationForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message="This field is required."), Email(message="Please enter a valid email.")])
    password = PasswordField('Password', validators=[DataRequired(message="This field is required."), Length(min=6, message="The password must be at least 6 characters long.")])
    password2 = PasswordField('Confirm password', validators=[DataRequired(message="This field is required."), EqualTo('password', message='Passwords must match.')])
    submit = SubmitField('Create account')


# --- Routes ---
@auth.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    form = LoginForm()
    if form.validate_on_submit():
        user = User.query.filter_by(email=form.email.data.strip().lower()).first()
        if user is None or not user.check_password(form.password.data):
            flash('Sign-in failed. Check your email and password.', 'danger')
            return redirect(url_for('auth.login'))

        login_user(user, remember=form.remember.data)
        ctx = get_session_context()
        if ctx.is_blocked:
            logout_user()
            flash(BLOCKED_MESSAGE, 'danger')
            return redirect(url_for('auth.login'))
        if ctx.error is not None:
            flash('We could not load your account details. Some pages may be unavailable.', 'warning')

        next_page = request.args.get('next')
        if next_page and next_page.startswith('/') and not next_page.startswith('//'):
            return redirect(next_page)
        if ctx.is_admin:
            return redirect(url_for('admin.requests_list'))
        return redirect(url_for('main.dashboard'))

    return render_template('login.html', form=form)


@auth.route('/register', methods=['GET', 'POST'])
def register():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    form = RegistrationForm()
    if form.validate_on_submit():
        email = form.email.data.strip().lower()
        if User.query.filter_by(email=email).first():
            flash('This email is already registered.', 'danger')
            return redirect(url_for('auth.register'))

        user = User(email=email)
        user.set_password(form.password.data)
        db.session.add(user)
        db.session.commit()

        flash('Account created! Please sign in to continue.', 'success')
        return redirect(url_for('auth.login'))

    return render_template('register.html', form=form)


@auth.route('/logout')
def logout():
    logout_user()
    return redirect(url_for('auth.login'))
