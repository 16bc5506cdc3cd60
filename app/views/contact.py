from __future__ import annotations
from flask import current_app, jsonify, request

from luxcars.contact import ContactValidationError, validate_contact
from luxcars.logger import Logger


log = Logger.bind(__name__)


def register(bp):

    @bp.route('/rest/contact_form', methods=['POST'])
    def contact_form():
        payload = request.get_json(silent=True)
        if payload is None:
            log.error("contact form body is not JSON")
            return jsonify({'error': 'Failed to submit contact form', 'message': 'Invalid JSON body'}), 500
        try:
            submission = validate_contact(payload)
        except ContactValidationError as e:
            return jsonify({'error': str(e)}), 400

        store = current_app.extensions.get('contact_store')
        if store is None:
            return jsonify({'error': 'Database not available'}), 500
        try:
            row_id = store.insert_contact(submission)
        except Exception as e:  # noqa: BLE001
            log.error(f"contact form insert failed error={e}")
            return jsonify({'error': 'Failed to submit contact form', 'message': str(e)}), 500
        log.info(f"contact form stored id={row_id} is_sell={submission.is_sell}")
        return jsonify({'message': 'Resource created successfully', 'data': submission.to_dict()}), 201
