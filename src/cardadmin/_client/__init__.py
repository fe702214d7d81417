"""Internal helpers for :class:`cardadmin.client.CardAdminClient`."""
