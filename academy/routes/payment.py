from flask import request, jsonify

from academy.services.verification import verify_payment


def verify_from_request(success_message):
    """Shared handler for the Razorpay checkout callback of every item kind."""
    data = request.get_json() or {}
    result = verify_payment(
        data.get("razorpay_order_id"),
        data.get("razorpay_payment_id"),
        data.get("razorpay_signature"),
    )
    return jsonify({
        "success": True,
        "message": success_message,
        "already_processed": result.already_processed,
        "enrollment_updated": result.enrollment_updated,
        "order": result.order.to_dict(),
        "enrollment": result.enrollment.to_dict() if result.enrollment else None,
    }), 200
