# Services package.
#
# Async functions holding the board's business logic, one module per
# concern:
#
#   article_service     - search, detail, create/update/delete of articles
#   comment_service     - comments, replies and thread assembly
#   hashtag_service     - hashtag parsing and hashtag row lifecycle
#   pagination_service  - page numbers of the pagination bar
#   user_service        - user accounts
#
# Functions that touch the database take an AsyncSession first; the
# router layer owns the transaction through the ``get_db`` dependency.
