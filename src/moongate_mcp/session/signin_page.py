"""HTML served by the local OAuth callback listener."""

import html
import json

_SIGNIN_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <title>MoonGate Login</title>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <script src="https://accounts.google.com/gsi/client" async defer></script>
  <style>
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
      display: flex;
      align-items: center;
      justify-content: center;
      min-height: 100vh;
      margin: 0;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
    }
    .container {
      background: white;
      padding: 3rem;
      border-radius: 16px;
      box-shadow: 0 10px 40px rgba(0,0,0,0.2);
      text-align: center;
      max-width: 400px;
      width: 90%;
    }
    h1 { margin: 0 0 0.5rem; color: #333; font-size: 28px; }
    p { color: #666; margin: 0 0 2rem; }
    .btn {
      display: flex;
      align-items: center;
      justify-content: center;
      width: 100%;
      padding: 12px;
      margin: 12px 0;
      border: 1px solid #ddd;
      border-radius: 8px;
      background: white;
      cursor: pointer;
      font-size: 16px;
    }
    .btn:hover { background: #f8f8f8; }
  </style>
</head>
<body>
  <div class="container">
    <h1>MoonGate Login</h1>
    <p>Sign in to connect your wallet</p>
    <div id="google-btn" class="btn">Sign in with Google</div>
    <div id="apple-btn" class="btn">Sign in with Apple</div>
  </div>

  <script>
    const API_URL = __API_URL__;
    const CALLBACK_URL = __CALLBACK_URL__;
    const GOOGLE_CLIENT_ID = __GOOGLE_CLIENT_ID__;

    function redirectToCallback(data, provider) {
      const params = new URLSearchParams({
        token: data.token,
        publicKey: data.publicKey || '',
        userId: data.userId || '',
        provider: provider
      });
      window.location.href = CALLBACK_URL + '?' + params.toString();
    }

    function handleGoogleCallback(response) {
      fetch(API_URL + '/api1/verifygoogle', {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ token: response.credential })
      })
      .then(res => res.json())
      .then(data => {
        if (data.token) {
          redirectToCallback(data, 'google');
        } else {
          alert('Authentication failed: ' + (data.error || 'Unknown error'));
        }
      })
      .catch(err => {
        console.error('Google auth error:', err);
        alert('Authentication failed. Please try again.');
      });
    }

    window.onload = function() {
      google.accounts.id.initialize({
        client_id: GOOGLE_CLIENT_ID,
        callback: handleGoogleCallback
      });
      document.getElementById('google-btn').onclick = function() {
        google.accounts.id.prompt();
      };
      document.getElementById('apple-btn').onclick = function() {
        alert('Apple Sign-In coming soon. Please use Google for now.');
      };
    };
  </script>
</body>
</html>
"""

SUCCESS_PAGE = (
    "<h1>Authentication successful!</h1>"
    "<p>You can close this window now.</p>"
    "<script>window.close();</script>"
)


def render_signin_page(api_url: str, callback_url: str, google_client_id: str = "") -> str:
    """Render the sign-in page with the API and callback URLs embedded as JS strings."""
    # json.dumps yields valid JS string literals; "</" is escaped to keep them inside <script>
    def js(value: str) -> str:
        return json.dumps(value).replace("</", "<\\/")

    return (
        _SIGNIN_TEMPLATE.replace("__API_URL__", js(api_url))
        .replace("__CALLBACK_URL__", js(callback_url))
        .replace("__GOOGLE_CLIENT_ID__", js(google_client_id))
    )


def render_failure_page(message: str) -> str:
    return f"<h1>Authentication failed</h1><p>{html.escape(message)}</p>"
