from flask import Blueprint

leave_bp = Blueprint("leave", __name__)
