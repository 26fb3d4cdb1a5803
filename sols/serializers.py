"""Plain dict renderings of sol objects for the JSON views"""


def _iso(value):
    return value.isoformat() if value else None


def participant_to_dict(participant):
    user = participant.user
    return {
        'id': participant.pk,
        'user_id': user.pk,
        'username': user.username,
        'name': user.get_full_name() or user.username,
        'position': participant.position,
        'role': participant.role,
        'payment_status': participant.payment_status,
        'total_paid': str(participant.total_paid),
        'last_payment_date': _iso(participant.last_payment_date),
        'has_received': participant.has_received,
        'received_amount': str(participant.received_amount),
        'received_date': _iso(participant.received_date),
        'joined_at': _iso(participant.joined_at),
    }


def payment_to_dict(payment):
    return {
        'id': payment.pk,
        'round_number': payment.round.round_number,
        'payer_id': payment.payer_id,
        'amount': str(payment.amount),
        'date': _iso(payment.date),
        'status': payment.status,
        'payment_method': payment.payment_method,
        'transaction_reference': payment.transaction.reference_number if payment.transaction_id else None,
        'notes': payment.notes,
    }


def round_to_dict(round_obj, include_payments=False):
    data = {
        'round_number': round_obj.round_number,
        'status': round_obj.status,
        'start_date': _iso(round_obj.start_date),
        'end_date': _iso(round_obj.end_date),
        'due_date': _iso(round_obj.due_date),
        'recipient_id': round_obj.recipient.user_id,
        'recipient_position': round_obj.recipient.position,
        'expected_amount': str(round_obj.expected_amount),
        'actual_amount': str(round_obj.actual_amount),
        'completed_date': _iso(round_obj.completed_date),
        'is_distributed': round_obj.is_distributed,
        'distribution_date': _iso(round_obj.distribution_date),
    }
    if include_payments:
        data['payments'] = [
            payment_to_dict(p) for p in round_obj.payments.select_related('round', 'transaction').order_by('date')
        ]
    return data


def sol_to_dict(sol, detail=False):
    data = {
        'id': str(sol.pk),
        'name': sol.name,
        'description': sol.description,
        'sol_type': sol.sol_type,
        'contribution_amount': str(sol.contribution_amount),
        'currency': sol.currency,
        'frequency': sol.frequency,
        'max_participants': sol.max_participants,
        'participant_count': sol.participant_count,
        'available_spots': sol.available_spots,
        'is_private': sol.is_private,
        'status': sol.status,
        'start_date': _iso(sol.start_date),
        'next_payment_date': _iso(sol.next_payment_date),
        'creator': {'id': sol.creator_id, 'username': sol.creator.username},
        'tags': sol.tags,
        'created_at': _iso(sol.created_at),
    }
    if not detail:
        return data

    data.update({
        'access_code': sol.access_code,
        'interest_rate': str(sol.interest_rate),
        'service_fee': str(sol.service_fee),
        'late_fee': str(sol.late_fee),
        'rules': sol.rules,
        'actual_start_date': _iso(sol.actual_start_date),
        'completed_date': _iso(sol.completed_date),
        'cancelled_date': _iso(sol.cancelled_date),
        'cancellation_reason': sol.cancellation_reason,
        'last_activity_date': _iso(sol.last_activity_date),
        'metrics': {
            'completed_rounds': sol.completed_rounds,
            'success_rate': str(sol.success_rate),
            'total_collected': str(sol.total_collected),
            'total_distributed': str(sol.total_distributed),
        },
        'participants': [participant_to_dict(p) for p in sol.active_participants().select_related('user')],
        'rounds': [
            round_to_dict(r, include_payments=True)
            for r in sol.rounds.select_related('recipient').order_by('round_number')
        ],
        'status_history': [
            {
                'from_status': h.from_status,
                'status': h.status,
                'reason': h.reason,
                'changed_by': h.changed_by_id,
                'created_at': _iso(h.created_at),
            }
            for h in sol.status_history.all()
        ],
    })
    return data
