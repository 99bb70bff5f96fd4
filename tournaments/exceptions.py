class TournamentError(Exception):
    """Base class for tournament domain errors.

    ``status_code`` is the HTTP status the API layer answers with and
    ``extra`` is merged into the error body.
    """

    code = "tournament_error"
    status_code = 400
    default_message = "Tournament operation failed."

    def __init__(self, message=None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_dict(self):
        return {"detail": self.message, "code": self.code, **self.extra}


class ScheduleValidationError(TournamentError):
    code = "validation_error"
    default_message = "Invalid tournament data."


class InvalidTimeFormat(ScheduleValidationError):
    code = "invalid_time_format"
    default_message = "Invalid time format. Expected HH:MM or HH:MM AM/PM format."


class InvalidTimezone(ScheduleValidationError):
    code = "invalid_timezone"
    default_message = "Invalid timezone provided."


class InvalidDuration(ScheduleValidationError):
    code = "invalid_duration"
    default_message = "Invalid tournament duration."


class InvalidPrizeType(ScheduleValidationError):
    code = "invalid_prize_type"
    default_message = "Unknown prize type."


class InvalidPrizeAmount(ScheduleValidationError):
    code = "invalid_prize_amount"
    default_message = "Prize amounts must be non-negative numbers."


class InvalidResults(ScheduleValidationError):
    code = "invalid_results"
    default_message = "Invalid results format."


class InvalidPayoutLine(ScheduleValidationError):
    code = "invalid_payout_line"
    default_message = "Invalid prize payout line."


class PolicyViolation(TournamentError):
    code = "policy_violation"
    default_message = "Operation not allowed."


class EntryFeeExceedsPool(PolicyViolation):
    code = "entry_fee_exceeds_pool"
    default_message = "Entry fee cannot be higher than the total prize pool."


class InsufficientFunds(PolicyViolation):
    code = "insufficient_funds"
    default_message = "Insufficient wallet balance."


class TopUpRequired(PolicyViolation):
    code = "topup_required"
    default_message = "Please complete the payment to fund your tournament."


class NotOrganizer(PolicyViolation):
    code = "not_organizer"
    status_code = 403
    default_message = "Only the tournament organizer can perform this action."


class WrongTournamentStatus(PolicyViolation):
    code = "wrong_tournament_status"
    default_message = "Tournament is not in the required status."


class InvalidStatusTransition(PolicyViolation):
    code = "invalid_status_transition"
    default_message = "Tournament status can only move forward."


class ParticipantNotOnRoster(PolicyViolation):
    code = "participant_not_on_roster"
    default_message = "Some users are not tournament participants."


class RegistrationClosed(PolicyViolation):
    code = "registration_closed"
    default_message = "Registration closed."


class AlreadyRegistered(PolicyViolation):
    code = "already_registered"
    default_message = "You are already registered for this tournament."


class ConfirmationRequired(PolicyViolation):
    code = "confirmation_required"
    default_message = "Please confirm registration to proceed."


class ResultsLocked(PolicyViolation):
    code = "results_locked"
    default_message = "Results cannot change after prizes were distributed."


class TournamentNotFound(TournamentError):
    code = "not_found"
    status_code = 404
    default_message = "Tournament not found."


class AlreadyDistributed(TournamentError):
    """Prizes were paid out before; retrying will never succeed."""

    code = "already_distributed"
    status_code = 409
    default_message = "Prizes have already been distributed for this tournament."


class NotificationDeliveryFailure(TournamentError):
    code = "notification_delivery_failure"
    status_code = 500
    default_message = "Notification could not be delivered."
