from social_feed.server import main


main()
