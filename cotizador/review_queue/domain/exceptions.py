"""Exceptions spécifiques à la file de revue."""


class ReviewQueueException(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class PendingRecordNotFoundException(ReviewQueueException):
    def __init__(self, record_id: int):
        super().__init__(f"Élément en attente avec ID {record_id} non trouvé.")
        self.record_id = record_id


class InvalidReviewTransitionException(ReviewQueueException):
    """Levée lorsqu'on tente d'approuver/rejeter un élément déjà traité."""
    def __init__(self, record_id: int, current_status: str, target_status: str):
        super().__init__(
            f"Transition impossible pour l'élément {record_id}: '{current_status}' -> '{target_status}'."
        )
        self.record_id = record_id
        self.current_status = current_status
        self.target_status = target_status


class ReviewPersistenceException(ReviewQueueException):
    """Levée lorsque l'enregistrement dans la file ou au catalogue échoue."""
    pass
