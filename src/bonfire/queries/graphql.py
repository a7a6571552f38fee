"""Static GraphQL documents sent to the Melior server."""

LOGIN_EMAIL_MUTATION = """
mutation LoginEmailMutation($input: LoginEmailInput!) {
  loginEmail(input: $input) {
    __typename
    ... on LoginResultSuccess {
      accessToken
      refreshToken
    }
    ... on LoginResultTfaRequired {
      tfaType
      tfaWaitToken
    }
  }
}
"""

LOGIN_REFRESH_MUTATION = """
mutation LoginRefreshMutation($refreshToken: String!) {
  loginRefresh(refreshToken: $refreshToken) {
    accessToken
    refreshToken
  }
}
"""

LOGOUT_MUTATION = """
mutation LogoutMutation {
  logout {
    success
  }
}
"""

ME_FIELDS = """
fragment MeFields on User {
  id
  username
  email
  cachedLevel
  birthday
  isNsfwAllowed
}
"""

ME_QUERY = """
query MeQuery {
  me {
    ...MeFields
  }
}
""" + ME_FIELDS

SET_BIRTHDAY_MUTATION = """
mutation SetBirthdayMutation($birthday: Date!) {
  setBirthday(birthday: $birthday) {
    ...MeFields
  }
}
""" + ME_FIELDS
