"""
Queue Model

Contains the QueueItem model for submitted recipe URLs awaiting extraction.
"""

from .base import db, utcnow


class QueueItem(db.Model):
    """Submitted URL. Pending while processed_at is NULL."""
    __table_args__ = (db.Index('ix_queue_item_pending', 'processed_at', 'created_at'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=True, index=True)
    url = db.Column(db.String(2048), nullable=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.String(1024), nullable=True)
    processed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_pending(self):
        return self.processed_at is None
