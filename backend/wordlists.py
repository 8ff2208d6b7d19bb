"""Word tables used by keyword extraction and uniqueness scoring.

Tokens are lowercase. Keyword extraction drops anything that appears in
STOP_WORDS or in any of the denylists gathered in KEYWORD_DENYLISTS.
"""


def _words(block: str) -> frozenset[str]:
    return frozenset(block.split())


STOP_WORDS = _words(
    """
    a an the i me my myself we our ours ourselves you your yours yourself
    yourselves he him his himself she her hers herself it its itself they them
    their theirs themselves and but or nor for yet so because although though
    while if unless until when where whether about above across after against
    along among around at before behind below beneath beside between beyond by
    down during except from in inside into near of off on onto out outside over
    through to toward under underneath up upon with within without am is are was
    were be been being have has had having do does did doing will would should
    could may might must can shall get got getting go going gone went make made
    making take took taken taking all any both each few more most other some
    such no not only own same than too very just also then there here now how
    what who whom whose which this that these those much many little less least
    better best worse worst well good bad one two three four five six seven
    eight nine ten first second third fourth fifth yes ok okay please thanks
    thank welcome hello hi hey bye goodbye see look find found use used using
    like want need know think feel seem come came say said tell told ask asked
    give gave given put keep kept let begin began seemed become became show
    showed shown hear heard leave left felt bring brought hold held write wrote
    written stand stood run ran move moved live lived believe believed happen
    happened appear appeared continue continued set help helped talk talked turn
    turned start started next still back even new old long great another every
    right last early late different sure certain possible able since however
    therefore thus hence indeed moreover furthermore nevertheless otherwise
    meanwhile finally perhaps maybe probably likely blog post article page site
    website read reading click link share comment comments subscribe follow home
    menu search contact privacy policy terms cookie cookies copyright reserved
    rights recipe recipes cook cooking cooked bake baking baked ingredient
    ingredients food foods dish dishes meal meals serve serving servings prep
    prepare preparation prepared mix mixed mixing blend blended blending stir
    stirred stirring heat heated heating boil boiled boiling simmer simmered
    simmering fry fried frying grill grilled grilling roast roasted roasting
    taste tasting tastes flavor flavors season seasoned seasoning salt pepper
    oil butter water minute minutes hour hours cup cups tablespoon tablespoons
    teaspoon teaspoons tbsp tsp oz ounce ounces pound pounds gram grams liter
    liters pinch dash add added adding pour poured pouring slice sliced slicing
    chop chopped chopping cut cutting dice diced dicing mince minced mincing
    peel peeled peeling fresh dried frozen canned organic raw optional desired
    according instructions step steps method methods technique techniques tip
    tips note notes variation variations substitute substitutes easy simple
    quick delicious tasty yummy perfect homemade healthy enjoy enjoyed enjoying
    """
)

CODE_TERMS = _words(
    """
    const let var function return class div span href src alt img script style link
    meta html head body button input form label section article header footer nav
    aside main figure table tbody thead tfoot gdpr cookie privacy policy xmlns
    viewport charset async defer preload prefetch webpack jquery react angular
    vue scss sass less json xml svg png jpg jpeg gif webp avif mp4 webm ogg woff
    ttf eot otf aria role tabindex onclick onload mailto tel data attr prop elem
    node null undefined true false type name value id width height size color
    font border margin padding flex grid display position absolute relative fixed
    static sticky float clear overflow hidden visible auto none block inline text
    align center left right justify bold italic underline strikethrough uppercase
    lowercase capitalize transform translate rotate scale skew opacity visibility
    cursor pointer hover active focus disabled checked selected required optional
    valid invalid error warning success info debug trace log console window
    document navigator location history screen event target current default
    initial inherit unset important media query print responsive mobile desktop
    tablet breakpoint container wrapper content sidebar widget component module
    plugin extension addon theme template layout page post comment author category
    tag archive search filter sort pagination breadcrumb menu submenu dropdown
    modal popup tooltip alert notification toast snackbar dialog drawer sheet
    panel card tile chip badge avatar skeleton loader spinner progress stepper
    tabs accordion collapse expand toggle switch slider range picker calendar
    datepicker timepicker autocomplete typeahead combobox listbox tree treeview
    datagrid datatable chart graph plot visualization dashboard report analytics
    stats metrics benchmark performance speed load render paint reflow repaint
    optimize compress minify bundle chunk lazy eager suspense fallback placeholder
    """
)

INTERFACE_TERMS = _words(
    """
    menu icon logo navbar footer header sidebar widget toolbar dropdown modal
    popup tooltip breadcrumb pagination carousel slider gallery thumbnail avatar
    badge banner card panel tabs accordion alert notification button checkbox
    radio toggle switch search filter sort edit delete save cancel submit reset
    close open expand collapse show hide view next prev previous skip continue
    back forward home login logout signin signout signup register account
    profile settings preferences help support contact about terms conditions
    legal copyright reserved rights privacy policy disclaimer disclosure
    affiliate sponsored advertisement promo coupon deal offer sale discount
    price cost free premium subscribe newsletter email phone address location map
    directions hours closed available unavailable sold stock inventory shipping
    delivery pickup returns refund warranty guarantee testimonial review rating
    stars votes likes shares comments replies posts articles blogs news updates
    announcements events calendar schedule booking reservation appointment order
    checkout cart basket wishlist favorites bookmarks history recent popular
    trending featured recommended related similar more less all none any some
    other another same different new old latest oldest first last best worst top
    bottom high low large small medium tiny huge mini micro macro plus minus
    add remove increase decrease up down left right center middle start end
    beginning finish complete incomplete done undone pending processing loading
    waiting ready busy idle active inactive enabled disabled visible invisible
    shown hidden public private draft published archived deleted trashed spam
    junk inbox outbox sent received read unread starred flagged pinned unpinned
    muted unmuted blocked unblocked followed unfollowed subscribed unsubscribed
    """
)

BRAND_NAMES = _words(
    """
    google facebook twitter instagram youtube linkedin pinterest tiktok snapchat
    whatsapp amazon apple microsoft netflix spotify adobe wordpress shopify
    mailchimp paypal stripe zoom slack trello asana dropbox github gitlab bitbucket
    stackoverflow reddit quora medium substack patreon discord telegram signal
    android iphone ipad windows macos linux chrome firefox safari edge opera
    brave vivaldi yandex baidu bing yahoo duckduckgo ecosia
    """
)

AUTHOR_FIRST_NAMES = _words(
    """
    kate john jane mike sarah emma david lisa mary james robert michael william
    richard thomas charles daniel matthew jennifer jessica amanda melissa
    ashley stephanie nicole elizabeth michelle kimberly laura rebecca rachel
    anna christine susan karen nancy betty helen sandra donna carol ruth sharon
    linda patricia barbara maria margaret dorothy judy
    """
)

SOCIAL_TERMS = _words(
    """
    share tweet like follow pin repin gram post story stories reel reels viral
    trending hashtag tag mention dm direct message chat call video live stream
    broadcast upload download attach attachment embed iframe player playlist
    channel subscriber follower friend connection network community group page
    profile bio feed timeline wall board collection album photo photos image
    images picture pictures
    """
)

MARKETING_JARGON = _words(
    """
    seo sem serp ctr cpc cpa roi kpi analytics metrics conversion bounce
    engagement impression reach organic paid sponsored advertorial native display
    banner retargeting remarketing pixel tracking cookie session visitor user
    traffic pageview clickthrough heatmap funnel journey touchpoint attribution
    optimization testing experiment variant control hypothesis insight segmentation
    personalization targeting audience demographic psychographic behavioral
    contextual geotargeting dayparting frequency recency relevance quality score
    rank ranking index crawl spider bot robots sitemap schema markup structured
    microdata canonical redirect backlink anchor domain authority trust reputation
    brand awareness consideration intent query keyword longtail semantic related
    synonym stemming lemmatization tokenization stopword ngram tfidf cosine
    similarity distance clustering classification regression prediction forecasting
    trend pattern anomaly outlier correlation causation confidence significance
    pvalue alpha beta gamma delta epsilon zeta theta lambda sigma omega
    """
)

PIN_TERMS = _words(
    """
    pins pinned pinning pinterest pinner repinned board boards reply replies
    """
)

KEYWORD_DENYLISTS: dict[str, frozenset[str]] = {
    "code": CODE_TERMS,
    "interface": INTERFACE_TERMS,
    "brand": BRAND_NAMES,
    "author": AUTHOR_FIRST_NAMES,
    "social": SOCIAL_TERMS,
    "marketing": MARKETING_JARGON,
    "pins": PIN_TERMS,
}

DENIED_KEYWORDS = frozenset().union(*KEYWORD_DENYLISTS.values())

STOCK_PHOTO_MARKERS = (
    "shutterstock",
    "istockphoto",
    "gettyimages",
    "unsplash",
    "pexels",
    "pixabay",
    "stock.adobe",
    "depositphotos",
    "dreamstime",
    "123rf",
    "stockphoto",
    "placeholder",
)

SOCIAL_NETWORKS = (
    "facebook",
    "twitter",
    "instagram",
    "pinterest",
    "linkedin",
    "youtube",
)

VALID_ARIA_ROLES = _words(
    """
    button navigation main contentinfo banner link img dialog alert alertdialog
    status tab tabpanel tablist textbox search form progressbar list listitem
    table row cell rowgroup heading article complementary region switch checkbox
    radio radiogroup slider spinbutton menu menubar menuitem menuitemcheckbox
    menuitemradio
    """
)
