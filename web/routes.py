"""
Flask Routes - Page routes and API endpoints
Owner dashboard, student dashboard, sign in/out and the JSON API
"""

from functools import wraps
from flask import Blueprint, render_template, request, jsonify, redirect, url_for, flash
from flask_login import login_user, logout_user, login_required, current_user
from config.settings import config
from database.db_manager import get_db_manager, parse_price
from utils.formatting import format_price
from utils.logger import get_logger

logger = get_logger(__name__)
db_manager = get_db_manager()

# Create blueprints
main_bp = Blueprint('main', __name__)
auth_bp = Blueprint('auth', __name__)
owner_bp = Blueprint('owner', __name__)
student_bp = Blueprint('student', __name__)
api_bp = Blueprint('api', __name__)


def toast(key, variant='default'):
    """
    Queue a notification for the next rendered page

    Args:
        key: Entry in config.MESSAGES
        variant: default or destructive
    """
    title, description = config.MESSAGES[key]
    flash({'title': title, 'description': description}, variant)


def role_required(role):
    """Restrict a view to signed-in profiles with the given role"""
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            if current_user.role != role:
                logger.warning(f"Profile {current_user.id} ({current_user.role}) denied access to {request.path}")
                if request.blueprint == 'api':
                    return jsonify({
                        'success': False,
                        'error': 'forbidden',
                        'message': config.MESSAGES['WRONG_ROLE'][1]
                    }), 403
                toast('WRONG_ROLE', 'destructive')
                return redirect(url_for('main.index'))
            return view(*args, **kwargs)
        return wrapped
    return decorator


def empty_dashboard():
    return {
        'mess': None,
        'dishes': [],
        'stats': {'today_visitors': 0, 'total_visitors': 0},
        'total_price': 0
    }

# ==================== MAIN ROUTES ====================

@main_bp.route('/')
def index():
    """Send signed-in users to the dashboard for their role"""
    if not current_user.is_authenticated:
        return redirect(url_for('auth.login'))

    if current_user.is_mess_owner:
        return redirect(url_for('owner.dashboard'))
    return redirect(url_for('student.dashboard'))

# ==================== AUTH ROUTES ====================

@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Sign in with email and password"""
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))

    if request.method == 'POST':
        email = request.form.get('email', '').strip()
        password = request.form.get('password', '')

        profile = db_manager.authenticate(email, password) if email and password else None
        if not profile:
            toast('INVALID_CREDENTIALS', 'destructive')
            return render_template('login.html', email=email), 401

        login_user(profile)
        return redirect(url_for('main.index'))

    return render_template('login.html', email='')

@auth_bp.route('/signup', methods=['GET', 'POST'])
def signup():
    """Create a student or mess owner account"""
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))

    form = {
        'email': request.form.get('email', '').strip(),
        'username': request.form.get('username', '').strip(),
        'role': request.form.get('role', config.ROLE_STUDENT)
    }

    if request.method == 'POST':
        password = request.form.get('password', '')

        if not form['email'] or not form['username'] or not password or form['role'] not in config.ROLES:
            toast('INVALID_SIGN_UP', 'destructive')
            return render_template('signup.html', form=form, roles=config.ROLES), 400

        if db_manager.find_profile_by_email(form['email']):
            toast('EMAIL_TAKEN', 'destructive')
            return render_template('signup.html', form=form, roles=config.ROLES), 409

        profile = db_manager.create_profile(form['email'], form['username'], password, form['role'])
        if not profile:
            toast('SIGN_UP_FAILED', 'destructive')
            return render_template('signup.html', form=form, roles=config.ROLES), 500

        login_user(profile)
        toast('SIGNED_UP')
        return redirect(url_for('main.index'))

    return render_template('signup.html', form=form, roles=config.ROLES)

@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Sign out"""
    logger.info(f"Profile signed out: {current_user.id}")
    logout_user()
    toast('SIGNED_OUT')
    return redirect(url_for('auth.login'))

# ==================== OWNER ROUTES ====================

@owner_bp.route('/', endpoint='dashboard')
@role_required(config.ROLE_MESS_OWNER)
def owner_dashboard():
    """Owner dashboard - mess, menu and visitor stats"""
    data = db_manager.load_owner_dashboard(current_user.id)
    if data is None:
        toast('LOAD_MESS_FAILED', 'destructive')
        data = empty_dashboard()

    # Dish dialog: ?edit=<dish_id> opens it prefilled, ?add=1 opens it empty
    editing_dish = None
    edit_id = request.args.get('edit', type=int)
    if edit_id and data['mess']:
        editing_dish = db_manager.get_dish_for_mess(edit_id, data['mess'].id)

    dish_dialog_open = editing_dish is not None or request.args.get('add') == '1'
    if editing_dish:
        dish_form = {'name': editing_dish.name, 'price': format_price(editing_dish.price)}
    else:
        dish_form = {'name': '', 'price': ''}

    return render_template('owner_dashboard.html',
                          mess=data['mess'],
                          dishes=data['dishes'],
                          stats=data['stats'],
                          total_price=data['total_price'],
                          editing_dish=editing_dish,
                          dish_dialog_open=dish_dialog_open,
                          dish_form=dish_form)

@owner_bp.route('/mess', methods=['POST'])
@role_required(config.ROLE_MESS_OWNER)
def create_mess():
    """Create the owner's mess with default values"""
    mess = db_manager.create_default_mess(current_user.id)
    if mess:
        toast('MESS_CREATED')
    else:
        toast('CREATE_MESS_FAILED', 'destructive')
    return redirect(url_for('owner.dashboard'))

@owner_bp.route('/mess/update', methods=['POST'])
@role_required(config.ROLE_MESS_OWNER)
def update_mess():
    """Edit mess name, description and location"""
    mess = db_manager.update_mess(
        current_user.id,
        name=request.form.get('name', ''),
        description=request.form.get('description', ''),
        location=request.form.get('location', '')
    )
    if mess:
        toast('MESS_UPDATED')
    else:
        toast('UPDATE_MESS_FAILED', 'destructive')
    return redirect(url_for('owner.dashboard'))

@owner_bp.route('/dishes', methods=['POST'])
@role_required(config.ROLE_MESS_OWNER)
def save_dish():
    """Add a new dish, or update one when dish_id is posted"""
    dish_id = request.form.get('dish_id', type=int)
    name = request.form.get('name', '').strip()
    price = parse_price(request.form.get('price', ''))

    try:
        mess = db_manager.get_mess_for_owner(current_user.id)
    except Exception as e:
        logger.error(f"Error saving dish: {e}")
        mess = None

    if not mess:
        toast('SAVE_DISH_FAILED', 'destructive')
        return redirect(url_for('owner.dashboard'))

    if not name or price is None:
        toast('INVALID_DISH', 'destructive')
        if dish_id:
            return redirect(url_for('owner.dashboard', edit=dish_id))
        return redirect(url_for('owner.dashboard', add=1))

    if dish_id:
        dish = db_manager.update_dish(dish_id, mess.id, name, price)
    else:
        dish = db_manager.add_dish(mess.id, name, price)

    if dish:
        toast('DISH_UPDATED' if dish_id else 'DISH_ADDED')
    else:
        toast('SAVE_DISH_FAILED', 'destructive')

    return redirect(url_for('owner.dashboard'))

@owner_bp.route('/dishes/<int:dish_id>/delete', methods=['POST'])
@role_required(config.ROLE_MESS_OWNER)
def delete_dish(dish_id):
    """Remove a dish from the menu"""
    try:
        mess = db_manager.get_mess_for_owner(current_user.id)
    except Exception as e:
        logger.error(f"Error deleting dish: {e}")
        mess = None

    if mess and db_manager.delete_dish(dish_id, mess.id):
        toast('DISH_DELETED')
    else:
        toast('DELETE_DISH_FAILED', 'destructive')

    return redirect(url_for('owner.dashboard'))

# ==================== STUDENT ROUTES ====================

@student_bp.route('/', endpoint='dashboard')
@role_required(config.ROLE_STUDENT)
def student_dashboard():
    """Browse messes and their menus, filtered by name"""
    search_query = request.args.get('q', '')

    messes = db_manager.search_messes(search_query)
    if messes is None:
        toast('LOAD_MESSES_FAILED', 'destructive')
        messes = []

    return render_template('student_dashboard.html',
                          messes=messes,
                          search_query=search_query)

@student_bp.route('/visit/<int:mess_id>', methods=['POST'])
@role_required(config.ROLE_STUDENT)
def visit_mess(mess_id):
    """Mark today's visit to a mess"""
    status = db_manager.record_visit(current_user.id, mess_id)

    if status == config.VISIT_RECORDED:
        toast('VISIT_RECORDED')
    elif status == config.VISIT_ALREADY_RECORDED:
        toast('ALREADY_VISITED', 'destructive')
    elif status == config.VISIT_MESS_NOT_FOUND:
        toast('MESS_NOT_FOUND', 'destructive')
    else:
        toast('VISIT_FAILED', 'destructive')

    search_query = request.form.get('q', '')
    if search_query:
        return redirect(url_for('student.dashboard', q=search_query))
    return redirect(url_for('student.dashboard'))

# ==================== API ROUTES ====================

@api_bp.route('/messes', methods=['GET'])
@login_required
def list_messes():
    """API: All messes with their dishes, filtered by name"""
    search = request.args.get('search', '')

    messes = db_manager.search_messes(search)
    if messes is None:
        return jsonify({
            'success': False,
            'error': 'system_error',
            'message': config.MESSAGES['LOAD_MESSES_FAILED'][1]
        }), 500

    return jsonify({
        'success': True,
        'messes': [mess.to_dict(include_dishes=True) for mess in messes],
        'search': search
    })

@api_bp.route('/visits', methods=['POST'])
@role_required(config.ROLE_STUDENT)
def record_visit():
    """API: Mark today's visit to a mess"""
    data = request.get_json(silent=True) or {}
    mess_id = data.get('mess_id')

    if mess_id is None:
        return jsonify({
            'success': False,
            'error': 'No mess ID provided'
        }), 400

    if isinstance(mess_id, bool) or not isinstance(mess_id, int):
        return jsonify({
            'success': False,
            'error': 'Invalid mess ID'
        }), 400

    status = db_manager.record_visit(current_user.id, mess_id)

    if status == config.VISIT_RECORDED:
        return jsonify({
            'success': True,
            'message': config.MESSAGES['VISIT_RECORDED'][1]
        })

    if status == config.VISIT_ALREADY_RECORDED:
        return jsonify({
            'success': False,
            'error': 'already_visited',
            'message': config.MESSAGES['ALREADY_VISITED'][1]
        }), 409

    if status == config.VISIT_MESS_NOT_FOUND:
        return jsonify({
            'success': False,
            'error': 'mess_not_found',
            'message': config.MESSAGES['MESS_NOT_FOUND'][1]
        }), 404

    return jsonify({
        'success': False,
        'error': 'system_error',
        'message': config.MESSAGES['VISIT_FAILED'][1]
    }), 500

@api_bp.route('/owner/mess', methods=['GET'])
@role_required(config.ROLE_MESS_OWNER)
def get_owner_mess():
    """API: The owner's mess with dishes and stats"""
    data = db_manager.load_owner_dashboard(current_user.id)
    if data is None:
        return jsonify({
            'success': False,
            'error': 'system_error',
            'message': config.MESSAGES['LOAD_MESS_FAILED'][1]
        }), 500

    mess = data['mess']
    return jsonify({
        'success': True,
        'mess': mess.to_dict() if mess else None,
        'dishes': [dish.to_dict() for dish in data['dishes']],
        'stats': data['stats'],
        'total_price': float(data['total_price'])
    })

@api_bp.route('/owner/mess', methods=['POST'])
@role_required(config.ROLE_MESS_OWNER)
def create_owner_mess():
    """API: Create the owner's mess with default values"""
    mess = db_manager.create_default_mess(current_user.id)
    if not mess:
        return jsonify({
            'success': False,
            'error': config.MESSAGES['CREATE_MESS_FAILED'][1]
        }), 500

    return jsonify({
        'success': True,
        'message': config.MESSAGES['MESS_CREATED'][1],
        'mess': mess.to_dict()
    })

@api_bp.route('/owner/mess', methods=['PUT'])
@role_required(config.ROLE_MESS_OWNER)
def update_owner_mess():
    """API: Update mess details"""
    data = request.get_json(silent=True) or {}

    mess = db_manager.update_mess(
        current_user.id,
        name=data.get('name'),
        description=data.get('description'),
        location=data.get('location')
    )
    if not mess:
        return jsonify({
            'success': False,
            'error': config.MESSAGES['UPDATE_MESS_FAILED'][1]
        }), 400

    return jsonify({
        'success': True,
        'message': config.MESSAGES['MESS_UPDATED'][1],
        'mess': mess.to_dict()
    })

def _owner_mess_or_error():
    """Return (mess, None) or (None, error response) for dish API calls"""
    try:
        mess = db_manager.get_mess_for_owner(current_user.id)
    except Exception as e:
        logger.error(f"Error fetching owner mess: {e}")
        return None, (jsonify({'success': False, 'error': 'system_error'}), 500)

    if not mess:
        return None, (jsonify({'success': False, 'error': 'No mess found'}), 404)
    return mess, None

def _dish_payload():
    """Read and validate name/price from a JSON body"""
    data = request.get_json(silent=True) or {}
    name = str(data.get('name') or '').strip()
    price = parse_price(data.get('price'))
    return name, price

@api_bp.route('/owner/dishes', methods=['POST'])
@role_required(config.ROLE_MESS_OWNER)
def add_owner_dish():
    """API: Add a dish"""
    mess, error = _owner_mess_or_error()
    if error:
        return error

    name, price = _dish_payload()
    if not name or price is None:
        return jsonify({
            'success': False,
            'error': config.MESSAGES['INVALID_DISH'][1]
        }), 400

    dish = db_manager.add_dish(mess.id, name, price)
    if not dish:
        return jsonify({
            'success': False,
            'error': config.MESSAGES['SAVE_DISH_FAILED'][1]
        }), 500

    return jsonify({
        'success': True,
        'message': config.MESSAGES['DISH_ADDED'][1],
        'dish': dish.to_dict()
    }), 201

@api_bp.route('/owner/dishes/<int:dish_id>', methods=['PUT'])
@role_required(config.ROLE_MESS_OWNER)
def update_owner_dish(dish_id):
    """API: Update a dish"""
    mess, error = _owner_mess_or_error()
    if error:
        return error

    name, price = _dish_payload()
    if not name or price is None:
        return jsonify({
            'success': False,
            'error': config.MESSAGES['INVALID_DISH'][1]
        }), 400

    if not db_manager.get_dish_for_mess(dish_id, mess.id):
        return jsonify({'success': False, 'error': 'Dish not found'}), 404

    dish = db_manager.update_dish(dish_id, mess.id, name, price)
    if not dish:
        return jsonify({
            'success': False,
            'error': config.MESSAGES['SAVE_DISH_FAILED'][1]
        }), 500

    return jsonify({
        'success': True,
        'message': config.MESSAGES['DISH_UPDATED'][1],
        'dish': dish.to_dict()
    })

@api_bp.route('/owner/dishes/<int:dish_id>', methods=['DELETE'])
@role_required(config.ROLE_MESS_OWNER)
def delete_owner_dish(dish_id):
    """API: Delete a dish"""
    mess, error = _owner_mess_or_error()
    if error:
        return error

    if not db_manager.get_dish_for_mess(dish_id, mess.id):
        return jsonify({'success': False, 'error': 'Dish not found'}), 404

    if not db_manager.delete_dish(dish_id, mess.id):
        return jsonify({
            'success': False,
            'error': config.MESSAGES['DELETE_DISH_FAILED'][1]
        }), 500

    return jsonify({
        'success': True,
        'message': config.MESSAGES['DISH_DELETED'][1]
    })

@api_bp.route('/owner/stats', methods=['GET'])
@role_required(config.ROLE_MESS_OWNER)
def get_owner_stats():
    """API: Today's and all-time visitor counts"""
    mess, error = _owner_mess_or_error()
    if error:
        return error

    stats = db_manager.get_visitor_stats(mess.id)
    return jsonify({
        'success': True,
        'stats': stats
    })
