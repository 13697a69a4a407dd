# Services package.
#
#   subscription_service  SubscriptionService: create / get / update /
#                           delete / list / summarize for Subscription
#   validation            invariant checks shared by create and update
#
# The service receives its repository through the constructor and holds
# no other state; the router layer builds one per request via
# ``subtracker.dependencies.get_subscription_service``.
