# Services package.
#
# Each module exposes one service class encapsulating the business rules
# of a single concern:
#
#   credentials       bcrypt password hashing / verification
#   tokens            signed bearer token issue / decode
#   identity          Authorization header -> ResolvedIdentity
#   user_service      register, login, current user, account update
#   profile_service   profiles and the follow graph
#   article_service   article CRUD, favorites, tag listing
#   comment_service   comments attached to articles
#
# Services receive a request-scoped ``Store`` at construction (see
# ``conduit.dependencies``) so the router layer, via ``get_db``, owns the
# transaction boundary.  Failures are raised as ``conduit.errors``
# subclasses and rendered by the handler installed in ``conduit.main``.
